from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence

from autostream.logger import LogCallback, emit

# Language code -> audio/subtitle tokens seen in release names. Evaluated in
# priority-list order, patterns within a code in the order listed.
LANG_PATTERNS: Dict[str, List[re.Pattern]] = {
    "EN": [re.compile(r"\bEN(?:G|GLISH)?\b", re.I)],
    "ES": [re.compile(r"\bES(?:P|PAÑOL|PA|MX)?\b", re.I), re.compile(r"CASTELLANO", re.I),
           re.compile(r"LAT(?:AM|INO)?", re.I)],
    "PT-BR": [re.compile(r"\bPT[-_. ]?BR\b", re.I), re.compile(r"BRAS(?:IL|ILEIRO)", re.I)],
    "PT-PT": [re.compile(r"\bPT[-_. ]?PT\b", re.I), re.compile(r"PORTUGU(?:ÊS|ES)(?!\s*BR)", re.I)],
    "FR": [re.compile(r"\bFR(?:ENCH)?\b", re.I), re.compile(r"VOSTFR", re.I)],
    "IT": [re.compile(r"\bIT(?:A|ALIANO)?\b", re.I)],
    "DE": [re.compile(r"\bDE(?:U|UTSCH)?\b", re.I), re.compile(r"GERMAN", re.I)],
    "RU": [re.compile(r"\bRU(?:S|SSIAN)?\b", re.I)],
    "TR": [re.compile(r"\bTR(?:K|TURK(?:CE|ISH))?\b", re.I)],
    "PL": [re.compile(r"\bPL(?:POL|POLISH)?\b", re.I)],
    "LT": [re.compile(r"\bLT(?:U|LIETUVIU|LIETUVIŠK.*)\b", re.I), re.compile(r"Lietuvišk", re.I)],
    "AR": [re.compile(r"\bAR(?:A|ABIC)?\b", re.I)],
    "HI": [re.compile(r"\bHI(?:NDI)?\b", re.I)],
    "JA": [re.compile(r"\bJA(?:P|JPN|JAPANESE)?\b", re.I)],
    "KO": [re.compile(r"\bKO(?:R|KOR|KOREAN)?\b", re.I)],
    "ZH": [re.compile(r"\bZH(?:H|CHN|CHINESE)?\b", re.I), re.compile(r"Cantonese", re.I),
           re.compile(r"Mandarin", re.I)],
}

LANG_SCORE_STEP = 5

_ALIASES = {"PT": "PT-PT", "POR": "PT-PT", "PTBR": "PT-BR", "PT_BR": "PT-BR", "PT_PT": "PT-PT"}


def normalize_priority(codes: Optional[Sequence[Any]], max_len: Optional[int] = None) -> List[str]:
    """Uppercase, dedupe and bound a language priority list; unknown codes are dropped."""
    out: List[str] = []
    for raw in codes or []:
        code = str(raw or "").strip().upper()
        code = _ALIASES.get(code, code)
        if not code or code not in LANG_PATTERNS or code in out:
            continue
        out.append(code)
    if max_len is not None:
        out = out[:max_len]
    return out


def matches_language(text: str, code: str) -> bool:
    return any(p.search(text) for p in LANG_PATTERNS.get(code, ()))


def language_score(title: Optional[str], priority: Sequence[str]) -> int:
    if not priority or not title:
        return 0
    text = str(title)
    for i, code in enumerate(priority):
        if matches_language(text, code):
            return (len(priority) - i) * LANG_SCORE_STEP
    return 0


def stream_text(stream: Dict[str, Any]) -> str:
    return str(stream.get("title") or stream.get("name") or stream.get("tag") or "")


# Structured fields some scrapers use for audio and subtitle languages
_LANG_FIELDS = ("lang", "language", "audio", "audioLang")
_LANG_LIST_FIELDS = ("languages", "subtitles", "subtitleLangs")


def language_text(stream: Dict[str, Any]) -> str:
    """Display text plus every structured language field, joined by spaces."""
    chunks = [stream_text(stream), stream.get("description") or stream.get("info")]
    chunks.extend(stream.get(field) for field in _LANG_FIELDS)
    for field in _LANG_LIST_FIELDS:
        values = stream.get(field)
        if isinstance(values, (list, tuple)):
            chunks.append(" ".join(str(v) for v in values if v))
    return " ".join(str(c) for c in chunks if c)


def sort_by_language_preference(
    streams: List[Dict[str, Any]],
    priority: Sequence[str],
    log: Optional[LogCallback] = None,
) -> List[Dict[str, Any]]:
    if not priority:
        return streams
    scores = [language_score(language_text(s), priority) for s in streams]
    emit(log, "language scores", scores)
    # stable sort, equal scores keep upstream order
    order = sorted(range(len(streams)), key=lambda i: -scores[i])
    return [streams[i] for i in order]
