from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

from autostream.cache import TTLCache
from autostream.logger import LogCallback, emit


@dataclass(frozen=True)
class Meta:
    name: str
    season: Optional[int] = None
    episode: Optional[int] = None


def _to_int(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def split_item_id(media_type: str, item_id: str) -> Tuple[str, Optional[int], Optional[int]]:
    """``tt123:1:2`` -> ``("tt123", 1, 2)`` for series, ids are returned as-is otherwise."""
    if media_type != "series" or ":" not in item_id:
        return item_id, None, None
    parts = item_id.split(":")
    season = _to_int(parts[1]) if len(parts) > 1 else None
    episode = _to_int(parts[2]) if len(parts) > 2 else None
    return parts[0], season, episode


class MetaClient:
    """Title lookup against Cinemeta, used only to label the selected streams.

    Lookup failures degrade to the bare IMDb id.
    """

    def __init__(self, base_url: str, cache: TTLCache, timeout_ms: int = 5000,
                 client: Optional[httpx.AsyncClient] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.timeout_ms = timeout_ms
        self._client = client

    async def _fetch_name(self, media_type: str, imdb: str) -> Optional[str]:
        url = f"{self.base_url}/{media_type}/{imdb}.json"
        timeout = httpx.Timeout(self.timeout_ms / 1000.0)
        if self._client is not None:
            resp = await self._client.get(url, timeout=timeout)
        else:
            async with httpx.AsyncClient(follow_redirects=True, timeout=timeout) as client:
                resp = await client.get(url)
        resp.raise_for_status()
        data = resp.json()
        meta = data.get("meta") if isinstance(data, dict) else None
        if isinstance(meta, dict) and meta.get("name"):
            return str(meta["name"])
        return None

    async def fetch_meta(self, media_type: str, item_id: str, log: Optional[LogCallback] = None) -> Meta:
        key = f"{media_type}|{item_id}"
        cached = self.cache.get(key)
        if cached is not None:
            emit(log, "meta cache hit", key)
            return cached

        imdb, season, episode = split_item_id(media_type, item_id)
        try:
            name = await self._fetch_name(media_type, imdb)
        except (httpx.HTTPError, ValueError) as exc:
            emit(log, "meta fetch error", repr(exc))
            name = None

        meta = Meta(name=name or imdb, season=season, episode=episode)
        self.cache.set(key, meta)
        return meta
