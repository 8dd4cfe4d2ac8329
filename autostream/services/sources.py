from __future__ import annotations

import asyncio
import copy
import urllib.parse
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx

from autostream.cache import TTLCache
from autostream.constants import stremio_headers
from autostream.errors import UpstreamError, UpstreamRateLimited
from autostream.logger import LogCallback, emit
from autostream.rate_limiter import RateLimiter

ORIGIN_KEY = "_origin"
SEASON_PACK_KEY = "_season_pack"


@dataclass(frozen=True)
class StreamSource:
    """An upstream Stremio stream add-on.

    A ``primary`` source must answer; any failure is raised to the caller.
    Other sources are best effort and contribute nothing when they fail.

    ``cache_ttl_ms`` overrides the shared cache TTL for this source's results.
    With ``season_pack_fallback`` an episode lookup that comes back empty is
    retried with the bare series id and the results are flagged as season packs.
    """
    name: str
    base_url: str
    primary: bool = False
    timeout_ms: int = 15000
    cache_ttl_ms: Optional[int] = None
    season_pack_fallback: bool = False


def build_url(base_url: str, media_type: str, item_id: str, query: Optional[Dict[str, Any]] = None) -> str:
    base = base_url.rstrip("/")
    item = urllib.parse.quote(item_id, safe=":")
    qs = urllib.parse.urlencode(sorted((query or {}).items()))
    url = f"{base}/stream/{media_type}/{item}.json"
    return f"{url}?{qs}" if qs else url


def season_pack_id(media_type: str, item_id: str) -> Optional[str]:
    """``tt123:1:2`` -> ``tt123`` for series episodes, None otherwise."""
    if media_type != "series" or ":" not in item_id:
        return None
    return item_id.split(":")[0] or None


def _streams_from_payload(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return []
    streams = payload.get("streams")
    if not isinstance(streams, list):
        return []
    return [s for s in streams if isinstance(s, dict)]


class SourceClient:
    """Cached, rate-limited access to upstream stream add-ons.

    The cache key is the full request URL (base + path + sorted query).
    Concurrent misses for the same key may both go upstream; the later
    write simply replaces the earlier one.
    """

    def __init__(
        self,
        cache: TTLCache,
        limiter: Optional[RateLimiter] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.cache = cache
        self.limiter = limiter
        self._client = client

    async def _get_json(self, url: str, timeout_ms: int) -> Any:
        timeout = httpx.Timeout(timeout_ms / 1000.0)
        if self._client is not None:
            resp = await self._client.get(url, headers=stremio_headers, timeout=timeout)
            resp.raise_for_status()
            return resp.json()
        async with httpx.AsyncClient(follow_redirects=True, timeout=timeout) as client:
            resp = await client.get(url, headers=stremio_headers)
            resp.raise_for_status()
            return resp.json()

    async def _request(
        self, source: StreamSource, url: str, log: Optional[LogCallback]
    ) -> Optional[List[Dict[str, Any]]]:
        """Streams from one upstream call; None when a best-effort source failed."""
        emit(log, f"fetch {source.name}", url)
        try:
            payload = await asyncio.wait_for(
                self._get_json(url, source.timeout_ms),
                timeout=source.timeout_ms / 1000.0,
            )
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            emit(log, f"{source.name} http error", status)
            if source.primary:
                raise UpstreamError(source.name, f"fetch failed: {status}", status=status) from exc
            return None
        except (httpx.HTTPError, asyncio.TimeoutError, ValueError) as exc:
            emit(log, f"{source.name} fetch error", repr(exc))
            if source.primary:
                raise UpstreamError(source.name, f"fetch failed: {exc!r}") from exc
            return None
        return _streams_from_payload(payload)

    async def fetch(
        self,
        source: StreamSource,
        media_type: str,
        item_id: str,
        query: Optional[Dict[str, Any]] = None,
        log: Optional[LogCallback] = None,
    ) -> List[Dict[str, Any]]:
        url = build_url(source.base_url, media_type, item_id, query)
        cached = self.cache.get(url)
        if cached is not None:
            emit(log, f"{source.name} cache hit", url)
            return copy.deepcopy(cached)

        if self.limiter is not None and not self.limiter.is_allowed(source.name):
            emit(log, f"{source.name} rate limited", url)
            if source.primary:
                raise UpstreamRateLimited(source.name)
            return []

        streams = await self._request(source, url, log)
        pack_id = season_pack_id(media_type, item_id) if source.season_pack_fallback else None
        if streams == [] and pack_id:
            emit(log, f"{source.name} no episode streams, trying season pack", pack_id)
            streams = await self._request(source, build_url(source.base_url, media_type, pack_id, query), log)
            for stream in streams or []:
                stream[SEASON_PACK_KEY] = True
        if streams is None:
            # failures are not cached
            return []

        for stream in streams:
            stream[ORIGIN_KEY] = source.name
        # stored under the episode url, season pack results included
        self.cache.set(url, streams, ttl_ms=source.cache_ttl_ms)
        emit(log, f"{source.name} streams", len(streams))
        return copy.deepcopy(streams)

    async def gather_streams(
        self,
        sources: Sequence[StreamSource],
        media_type: str,
        item_id: str,
        query: Optional[Dict[str, Any]] = None,
        log: Optional[LogCallback] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch every source concurrently and concatenate in source order.

        A primary failure cancels the remaining fetches and propagates.
        """
        tasks = [
            asyncio.ensure_future(self.fetch(source, media_type, item_id, query, log))
            for source in sources
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # collect sibling outcomes so none is left unretrieved
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        combined: List[Dict[str, Any]] = []
        for streams in results:
            combined.extend(streams)
        return combined
