from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from autostream.core.lang import sort_by_language_preference
from autostream.core.quality import GIB, RANK_720P, RANK_1080P, Candidate, extract
from autostream.logger import LogCallback, emit

# Size assumed for streams of unknown size, so seeders still count.
UNKNOWN_SIZE_GB = 0.1


@dataclass(frozen=True)
class Weights:
    quality: float
    speed: float


# debrid mode favours quality, plain torrent mode favours swarm speed
DEBRID_WEIGHTS = Weights(quality=1.0, speed=0.7)
NO_DEBRID_WEIGHTS = Weights(quality=0.5, speed=1.0)


def weights_for(use_debrid: bool, debrid: Weights = DEBRID_WEIGHTS, plain: Weights = NO_DEBRID_WEIGHTS) -> Weights:
    return debrid if use_debrid else plain


def compute_score(quality_rank: int, seeders: int, size_bytes: int, weights: Weights) -> float:
    size_gb = size_bytes / GIB if size_bytes > 0 else UNKNOWN_SIZE_GB
    speed_score = seeders / size_gb
    return (quality_rank * weights.quality) + (speed_score * weights.speed)


def annotate(
    streams: Sequence[Dict[str, Any]],
    weights: Weights,
    log: Optional[LogCallback] = None,
) -> List[Candidate]:
    annotated = []
    for stream in streams:
        item = extract(stream, log)
        item.score = compute_score(item.quality_rank, item.seeders, item.size, weights)
        annotated.append(item)
    return annotated


def select_candidates(
    annotated: Sequence[Candidate],
    include_1080_fallback: bool,
) -> List[Candidate]:
    """Winner plus at most one quality-adjacent fallback.

    - winner above 1080p and ``include_1080_fallback``: add the best 1080p
    - winner at 1080p: add the best 720p
    """
    if not annotated:
        return []

    best_per_rank: Dict[int, Candidate] = {}
    for item in annotated:
        current = best_per_rank.get(item.quality_rank)
        if current is None or item.score > current.score:
            best_per_rank[item.quality_rank] = item

    winner = annotated[0]
    for item in annotated[1:]:
        if item.score > winner.score:
            winner = item

    result = [winner]
    if include_1080_fallback and winner.quality_rank > RANK_1080P:
        fallback = best_per_rank.get(RANK_1080P)
        if fallback is not None:
            result.append(fallback)
    if winner.quality_rank == RANK_1080P:
        fallback = best_per_rank.get(RANK_720P)
        if fallback is not None:
            result.append(fallback)
    return result


def pick_streams(
    streams: Optional[Sequence[Dict[str, Any]]],
    use_debrid: bool,
    include_1080_fallback: bool,
    log: Optional[LogCallback] = None,
    weights: Optional[Weights] = None,
) -> List[Dict[str, Any]]:
    """Return the winning stream and its fallback, as the original dicts."""
    if not streams:
        emit(log, "no streams to pick from")
        return []

    annotated = annotate(streams, weights or weights_for(use_debrid), log)
    selected = select_candidates(annotated, include_1080_fallback)
    emit(log, "selected", [(c.quality_label, round(c.score, 3)) for c in selected])
    return [c.stream for c in selected]


def pick_streams_lang_first(
    streams: Optional[Sequence[Dict[str, Any]]],
    use_debrid: bool,
    include_1080_fallback: bool,
    lang_priority: Sequence[str],
    log: Optional[LogCallback] = None,
    weights: Optional[Weights] = None,
) -> List[Dict[str, Any]]:
    """Language-aware pick.

    Candidates are pre-ordered by language so that among equal scores the
    preferred language wins the tie, and the final pair is re-ordered the same
    way.
    """
    ordered = sort_by_language_preference(list(streams or []), lang_priority, log)
    picked = pick_streams(ordered, use_debrid, include_1080_fallback, log, weights)
    return sort_by_language_preference(picked, lang_priority)
