from typing import Any, Dict, List, Optional

from autostream.core.quality import extract_seeders_and_size
from autostream.logger import LogCallback, emit


def _as_int(value: Any) -> int:
    try:
        return max(int(float(value)), 0)
    except (TypeError, ValueError):
        return 0


def stream_size(stream: Dict[str, Any]) -> int:
    """Best known size in bytes: explicit fields first, then the title text; 0 when unknown."""
    torrent = stream.get("torrent") if isinstance(stream.get("torrent"), dict) else {}
    hints = stream.get("behaviorHints") if isinstance(stream.get("behaviorHints"), dict) else {}
    for raw in (stream.get("size"), stream.get("bytes"), torrent.get("size"), hints.get("videoSize")):
        size = _as_int(raw)
        if size:
            return size
    title = stream.get("title")
    if isinstance(title, str):
        return extract_seeders_and_size(title)[1]
    return 0


def filter_by_max_size(
    streams: List[Dict[str, Any]],
    max_bytes: Optional[int],
    log: Optional[LogCallback] = None,
) -> List[Dict[str, Any]]:
    """Keep streams of unknown size or at most ``max_bytes``. 0/None disables the filter."""
    limit = _as_int(max_bytes)
    if not limit:
        return streams
    kept = []
    for stream in streams:
        size = stream_size(stream)
        if not size or size <= limit:
            kept.append(stream)
        else:
            emit(log, "size filter excluded", (stream.get("name"), size))
    return kept
