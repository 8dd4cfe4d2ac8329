"""Quality, seeder and size extraction from free-text stream titles.

Upstream add-ons describe a torrent in display text only, e.g. Torrentio::

    name:  "Torrentio\\n1080p"
    title: "Movie.2020.1080p.WEB-DL\\n👤 52 💾 2.1 GB ⚙️ ThePirateBay"

Everything here is best effort: unknown fields come back as rank 0,
seeders 0 and size 0, never as an exception.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from autostream.logger import LogCallback, emit

GIB = 1024 ** 3

# canonical tier -> (rank, patterns); first matching tier wins
QUALITY_TIERS: List[Tuple[str, int, List[re.Pattern]]] = [
    ("8K", 5, [re.compile(r"8k", re.I), re.compile(r"4320", re.I)]),
    ("4K", 4, [re.compile(r"2160", re.I), re.compile(r"4k", re.I), re.compile(r"\buhd\b", re.I)]),
    ("2K", 3, [re.compile(r"1440", re.I), re.compile(r"2k", re.I)]),
    ("1080p", 2, [re.compile(r"1080", re.I)]),
    ("720p", 1, [re.compile(r"720", re.I)]),
    ("480p", 0, [re.compile(r"480", re.I)]),
]

RANK_720P = 1
RANK_1080P = 2

_UNIT_SCALE = {
    "T": 1024 ** 4,
    "G": 1024 ** 3,
    "M": 1024 ** 2,
    "K": 1024,
}

_SEEDER_PATTERNS = [
    re.compile(r"👤\s*(\d[\d,]*)"),
    re.compile(r"\bseed(?:er)?s?\s*[:=]?\s*(\d[\d,]*)", re.I),
    re.compile(r"\bS\s*:\s*(\d[\d,]*)"),
]

_SIZE_PATTERNS = [
    re.compile(r"💾\s*(\d[\d,]*(?:\.\d+)?\s*[KMGT]i?B)", re.I),
    re.compile(r"\bsize\s*[:=]?\s*(\d[\d,]*(?:\.\d+)?\s*[KMGT]i?B)", re.I),
    re.compile(r"(?<![\w.])(\d[\d,]*(?:\.\d+)?\s*[KMGT]i?B)\b", re.I),
]


@dataclass
class Candidate:
    """A stream annotated for ranking. ``stream`` is the untouched upstream dict."""
    stream: Any
    quality_label: str = "unknown"
    quality_rank: int = 0
    seeders: int = 0
    size: int = 0
    score: float = 0.0
    origin: Optional[str] = None


def normalise_quality(label: Optional[str]) -> str:
    text = (label or "").strip()
    for tier, _rank, patterns in QUALITY_TIERS:
        if any(p.search(text) for p in patterns):
            return tier
    return text or "unknown"


def quality_to_rank(label: Optional[str]) -> int:
    text = (label or "").strip()
    for _tier, rank, patterns in QUALITY_TIERS:
        if any(p.search(text) for p in patterns):
            return rank
    return 0


def parse_size(size_text: Optional[str]) -> int:
    """Convert ``"1.4 GB"``/``"700MB"``/``"1,024 KiB"`` to bytes; 0 when unparseable."""
    if not size_text:
        return 0
    match = re.match(r"\s*(\d[\d,]*(?:\.\d+)?)\s*([A-Za-z]*)", str(size_text))
    if not match:
        return 0
    try:
        value = float(match.group(1).replace(",", ""))
    except ValueError:
        return 0
    unit = match.group(2).upper()
    scale = _UNIT_SCALE.get(unit[:1], 1)
    return int(value * scale)


def _to_int(raw: str) -> int:
    try:
        return int(raw.replace(",", ""))
    except (ValueError, AttributeError):
        return 0


def _legacy_last_line(title: str) -> Tuple[int, int]:
    # "<seeders> <value> <unit>" on the last non-empty line
    for line in reversed(title.split("\n")):
        line = line.strip()
        if not line:
            continue
        parts = line.split()
        seeders = _to_int(parts[0]) if parts[0].isdigit() else 0
        size = parse_size(f"{parts[1]} {parts[2]}") if len(parts) >= 3 else 0
        return seeders, size
    return 0, 0


def extract_seeders_and_size(title: Optional[str]) -> Tuple[int, int]:
    if not title or not isinstance(title, str):
        return 0, 0

    seeders = 0
    for pattern in _SEEDER_PATTERNS:
        match = pattern.search(title)
        if match:
            seeders = _to_int(match.group(1))
            break

    size = 0
    for pattern in _SIZE_PATTERNS:
        match = pattern.search(title)
        if match:
            size = parse_size(match.group(1))
            break

    if not seeders:
        seeders, legacy_size = _legacy_last_line(title)
        size = size or legacy_size
    return max(seeders, 0), max(size, 0)


def quality_label(stream: Dict[str, Any]) -> Optional[str]:
    """Explicit ``tag`` first, otherwise the first token of the second ``name`` line."""
    tag = stream.get("tag")
    if tag:
        return str(tag)
    name = stream.get("name")
    if not name or not isinstance(name, str):
        return None
    lines = name.split("\n")
    detail = lines[1] if len(lines) > 1 else ""
    tokens = detail.split()
    return tokens[0] if tokens else ""


def extract(stream: Any, log: Optional[LogCallback] = None) -> Candidate:
    if not isinstance(stream, dict):
        emit(log, "extract defaults", type(stream).__name__)
        return Candidate(stream=stream)
    title = stream.get("title") or stream.get("description") or ""
    seeders, size = extract_seeders_and_size(title if isinstance(title, str) else "")
    label = normalise_quality(quality_label(stream))
    if label == "unknown" or not (seeders or size):
        emit(log, "extract partial", (label, seeders, size))
    return Candidate(
        stream=stream,
        quality_label=label,
        quality_rank=quality_to_rank(label),
        seeders=seeders,
        size=size,
        origin=stream.get("_origin"),
    )
