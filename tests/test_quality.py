"""Tests for quality, seeder and size extraction from stream display text."""
import pytest

from autostream.core.quality import (
    GIB,
    QUALITY_TIERS,
    extract,
    extract_seeders_and_size,
    normalise_quality,
    parse_size,
    quality_label,
    quality_to_rank,
)


@pytest.mark.parametrize(
    "label,tier,rank",
    [
        ("720p", "720p", 1),
        ("1080p", "1080p", 2),
        ("1440p", "2K", 3),
        ("2160p", "4K", 4),
        ("4k", "4K", 4),
        ("8K", "8K", 5),
        ("480p", "480p", 0),
        ("CAM", "CAM", 0),
        ("", "unknown", 0),
        (None, "unknown", 0),
    ],
)
def test_normalise_and_rank(label, tier, rank):
    assert normalise_quality(label) == tier
    assert quality_to_rank(normalise_quality(label)) == rank


def test_rank_increases_with_resolution_tier():
    ranks = [rank for _tier, rank, _patterns in QUALITY_TIERS if rank > 0]
    assert ranks == sorted(ranks, reverse=True)
    assert len(set(ranks)) == len(ranks)


def test_parse_size_units():
    assert parse_size("1 GB") == GIB
    assert parse_size("1.5 GiB") == int(1.5 * GIB)
    assert parse_size("700 MB") == 700 * 1024 ** 2
    assert parse_size("1,024 KB") == 1024 * 1024
    assert parse_size("2 TB") == 2 * 1024 ** 4
    assert parse_size("garbage") == 0
    assert parse_size(None) == 0


def test_torrentio_title_layout():
    title = "Movie.2020.1080p.WEB-DL.x264\n👤 52 💾 2.1 GB ⚙️ ThePirateBay"
    seeders, size = extract_seeders_and_size(title)
    assert seeders == 52
    assert size == int(2.1 * GIB)


def test_keyword_layout():
    seeders, size = extract_seeders_and_size("Show S01E01 720p | Seeders: 1,204 | Size: 700 MB")
    assert seeders == 1204
    assert size == 700 * 1024 ** 2


def test_legacy_last_line_layout():
    seeders, size = extract_seeders_and_size("Movie 2160p\n15 4.2 GB")
    assert seeders == 15
    assert size == int(4.2 * GIB)


@pytest.mark.parametrize("title", [None, "", "no numbers here", 42, "\n\n"])
def test_malformed_titles_default_to_zero(title):
    assert extract_seeders_and_size(title) == (0, 0)


def test_quality_label_prefers_tag():
    assert quality_label({"tag": "2160p", "name": "Torrentio\n1080p"}) == "2160p"


def test_quality_label_from_second_name_line():
    assert quality_label({"name": "Torrentio\n1080p HDR"}) == "1080p"
    assert quality_label({"name": "Torrentio"}) == ""
    assert quality_label({}) is None


def test_extract_never_raises():
    item = extract({"name": 5, "title": ["not", "text"], "tag": None})
    assert (item.quality_rank, item.seeders, item.size) == (0, 0, 0)
    assert extract(None).quality_rank == 0
    assert extract("raw string").seeders == 0


def test_extract_keeps_origin_and_stream():
    stream = {"name": "Torrentio\n4k", "title": "x\n👤 3 💾 10 GB", "_origin": "Torrentio"}
    item = extract(stream)
    assert item.stream is stream
    assert item.origin == "Torrentio"
    assert item.quality_label == "4K"
    assert item.quality_rank == 4
    assert item.seeders == 3
    assert item.size == 10 * GIB


def test_extract_log_callback_reports_defaults():
    events = []

    def log(event, detail):
        events.append((event, detail))

    extract("not a stream", log)
    extract({"name": "Torrentio\nCAM"}, log)
    extract({"name": "Torrentio\n1080p", "title": "x\n👤 5 💾 1 GB"}, log)
    assert events == [("extract defaults", "str"), ("extract partial", ("CAM", 0, 0))]
    assert extract({"name": "Torrentio\nCAM"}) == extract({"name": "Torrentio\nCAM"}, log)
