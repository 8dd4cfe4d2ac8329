"""Tests for language priority scoring and ordering."""
from autostream.core.lang import (
    LANG_PATTERNS,
    language_score,
    language_text,
    normalize_priority,
    sort_by_language_preference,
)


def test_scores_follow_priority_position():
    prio = ["EN", "ES"]
    assert language_score("Movie 2020 ENG 1080p", prio) == 10
    assert language_score("Pelicula 2020 CASTELLANO 1080p", prio) == 5
    assert language_score("Film 2020 VOSTFR", prio) == 0


def test_first_matching_code_wins():
    assert language_score("Movie Dual ENG ESP", ["ES", "EN"]) == 10
    assert language_score("Movie Dual ENG ESP", ["EN", "ES"]) == 10


def test_matching_is_case_insensitive_and_knows_aliases():
    assert language_score("movie.latino.1080p", ["ES"]) == 5
    assert language_score("Film PT-BR Dublado", ["PT-BR"]) == 5
    assert language_score("Film.GERMAN.DL", ["DE"]) == 5
    assert language_score("Anime Mandarin", ["ZH"]) == 5


def test_empty_inputs_score_zero():
    assert language_score("Movie ENG", []) == 0
    assert language_score("", ["EN"]) == 0
    assert language_score(None, ["EN"]) == 0


def test_sort_places_preferred_first_and_is_stable():
    streams = [
        {"title": "A unknown"},
        {"title": "B ESP"},
        {"title": "C ENG"},
        {"title": "D unknown"},
        {"title": "E ESP"},
        {"title": "F ENGLISH"},
    ]
    ordered = sort_by_language_preference(streams, ["EN", "ES"])
    assert [s["title"][0] for s in ordered] == ["C", "F", "B", "E", "A", "D"]


def test_sort_falls_back_to_name_and_tag():
    streams = [{"name": "plain"}, {"name": "Torrentio ITA"}, {"tag": "FRENCH"}]
    ordered = sort_by_language_preference(streams, ["FR", "IT"])
    assert ordered == [streams[2], streams[1], streams[0]]


def test_empty_priority_is_noop():
    streams = [{"title": "B ESP"}, {"title": "C ENG"}]
    assert sort_by_language_preference(streams, []) is streams


def test_normalize_priority_bounds_and_cleans():
    assert normalize_priority(["en", " es ", "EN", "", None, "xx", "pt"]) == ["EN", "ES", "PT-PT"]
    assert normalize_priority(list(LANG_PATTERNS), max_len=3) == list(LANG_PATTERNS)[:3]
    assert normalize_priority(None) == []


def test_structured_language_fields_are_matched():
    plain = {"title": "Movie.2020.1080p"}
    tagged = {"title": "Movie.2020.1080p", "description": "Audio: ESP", "languages": ["ES"]}
    assert sort_by_language_preference([plain, tagged], ["ES"]) == [tagged, plain]

    subtitled = {"title": "Movie.2020.1080p", "subtitles": ["FR", "DE"]}
    audio = {"title": "Movie.2020.1080p", "audioLang": "GERMAN"}
    assert sort_by_language_preference([plain, subtitled], ["DE"]) == [subtitled, plain]
    assert sort_by_language_preference([plain, audio], ["DE"]) == [audio, plain]


def test_language_text_joins_structured_fields():
    stream = {"name": "Torrentio", "info": "Dual", "lang": "EN", "languages": ["IT", None], "subtitleLangs": ["PL"]}
    assert language_text(stream) == "Torrentio Dual EN IT PL"


def test_sort_log_callback_is_optional():
    events = []
    streams = [{"title": "Movie ENG"}, {"title": "Movie ESP"}]
    with_log = sort_by_language_preference(streams, ["ES"], log=lambda event, detail: events.append((event, detail)))
    assert with_log == sort_by_language_preference(streams, ["ES"])
    assert events == [("language scores", [0, 5])]
