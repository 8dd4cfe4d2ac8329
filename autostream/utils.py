from typing import Dict, List, Mapping, Optional

from autostream.constants import debrid_params
from autostream.core.quality import GIB


def parse_csv(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(',') if part.strip()]


def has_debrid(query: Mapping[str, str]) -> bool:
    return any(query.get(key) for key in debrid_params)


def provider_tag(query: Mapping[str, str]) -> Optional[str]:
    """Short debrid provider label (``RD``, ``AD``...) for display, or None."""
    for key, tag in debrid_params.items():
        if query.get(key):
            return tag
    return None


def parse_max_size(raw: Optional[str]) -> int:
    """``max_size`` is given in GiB (``"2.5"``); returns bytes, 0 when absent or invalid."""
    if not raw:
        return 0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0
    if value <= 0:
        return 0
    return int(value * GIB)


def parse_flag(raw: Optional[str], default: bool) -> bool:
    if raw is None or raw == '':
        return default
    return raw.strip().lower() in {'1', 'true', 'yes', 'on'}


def cache_key(path: str, query: Mapping[str, str]) -> str:
    """Response-cache key: request path plus every query parameter, order independent."""
    parts = [path]
    parts.extend(f"{k}={query[k]}" for k in sorted(query))
    return '|'.join(parts)


def forwarded_query(query: Mapping[str, str], drop: List[str]) -> Dict[str, str]:
    """Query forwarded to upstream add-ons, minus our own selection options."""
    return {k: v for k, v in query.items() if k not in drop}
