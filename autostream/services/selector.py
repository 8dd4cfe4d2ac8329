"""Selection pipeline: size ceiling, blacklist, language-first pick, display formatting."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from autostream.constants import addon_name
from autostream.core.filters import filter_by_max_size
from autostream.core.lang import stream_text
from autostream.core.quality import normalise_quality, quality_label
from autostream.core.scoring import Weights, pick_streams_lang_first
from autostream.logger import LogCallback, emit
from autostream.services.meta import Meta


@dataclass
class StreamRequest:
    use_debrid: bool = False
    include_1080_fallback: bool = True
    lang_priority: List[str] = field(default_factory=list)
    max_size_bytes: int = 0
    blacklist: List[str] = field(default_factory=list)
    provider_tag: Optional[str] = None
    weights: Optional[Weights] = None


def filter_blacklist(streams: List[Dict[str, Any]], terms: Sequence[str]) -> List[Dict[str, Any]]:
    """Drop streams whose display text contains any of ``terms`` (case-insensitive)."""
    lowered = [t.lower() for t in terms if t]
    if not lowered:
        return streams
    kept = []
    for stream in streams:
        text = f"{stream_text(stream)} {stream.get('name') or ''}".lower()
        if not any(term in text for term in lowered):
            kept.append(stream)
    return kept


def select_streams(
    candidates: Sequence[Dict[str, Any]],
    options: StreamRequest,
    log: Optional[LogCallback] = None,
) -> List[Dict[str, Any]]:
    pool = list(candidates)
    pool = filter_by_max_size(pool, options.max_size_bytes, log)
    pool = filter_blacklist(pool, options.blacklist)
    emit(log, "candidates after filters", f"{len(pool)}/{len(candidates)}")
    return pick_streams_lang_first(
        pool,
        options.use_debrid,
        options.include_1080_fallback,
        options.lang_priority,
        log,
        options.weights,
    )


def build_stream_title(meta_name: str, season: Optional[int], episode: Optional[int],
                       quality: Optional[str]) -> str:
    title = meta_name
    if season is not None and episode is not None:
        title += f" — S{season:02d}E{episode:02d}"
    if quality:
        title += f" – {quality}"
    return title


def format_streams(meta: Meta, selected: Sequence[Dict[str, Any]],
                   provider_tag: Optional[str] = None) -> List[Dict[str, Any]]:
    """Relabel picked streams for display. Input dicts are not modified."""
    formatted = []
    for original in selected:
        quality = normalise_quality(quality_label(original))
        copy = dict(original)
        copy["name"] = f"{addon_name} ({provider_tag})" if provider_tag else addon_name
        copy["title"] = build_stream_title(meta.name, meta.season, meta.episode, quality)
        formatted.append(copy)
    return formatted
