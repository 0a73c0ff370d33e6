"""
Unit tests for slug, media and timestamp helpers.
"""

import re

import pytest
from datetime import date, datetime, time
from freezegun import freeze_time

from backend.src.utils.dates import (
    days_in_month,
    parse_timestamp,
    shift_month,
    sunday_weekday,
    utc_now,
)
from backend.src.utils.media import (
    clean_media_list,
    extract_youtube_id,
    is_inline_data,
    merge_media,
    normalize_video_url,
    normalize_youtube_url,
)
from backend.src.utils.slugs import fallback_slug, random_candidate, sequential_candidates, slugify


class TestSlugs:
    """Tests for slug helpers."""

    @pytest.mark.parametrize("text,expected", [
        ("Spring Meet", "spring-meet"),
        ("Encontro de Fuscas São Paulo", "encontro-de-fuscas-sao-paulo"),
        ("  --Kombi & Fusca 2026!--  ", "kombi-fusca-2026"),
        ("Spring Meet (copy)", "spring-meet-copy"),
        ("!!!", ""),
    ])
    def test_slugify(self, text, expected):
        assert slugify(text) == expected

    def test_sequential_candidates(self):
        candidates = sequential_candidates("spring-meet")
        assert [next(candidates) for _ in range(3)] == ["spring-meet", "spring-meet-1", "spring-meet-2"]

    def test_random_candidate(self):
        assert re.fullmatch(r"spring-meet-[0-9a-f]{6}", random_candidate("spring-meet"))

    def test_fallback_slug(self):
        assert re.fullmatch(r"past-event-\d+", fallback_slug("past-event"))


class TestMedia:
    """Tests for media reference helpers."""

    def test_inline_data(self):
        assert is_inline_data("data:image/png;base64,AAAA")
        assert is_inline_data("  DATA:image/png;base64,AAAA")
        assert not is_inline_data("https://cdn.example.com/a.jpg")
        assert not is_inline_data(None)

    def test_clean_media_list(self):
        assert clean_media_list([
            " https://cdn.example.com/a.jpg ",
            None,
            42,
            "data:image/png;base64,AAAA",
            "https://cdn.example.com/a.jpg",
        ]) == ["https://cdn.example.com/a.jpg"]

    def test_merge_media_keeps_first_seen_order(self):
        assert merge_media(["b", "a"], ["a", "c"], None) == ["b", "a", "c"]

    @pytest.mark.parametrize("value", [
        "dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42",
        "https://m.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://youtube.com/shorts/dQw4w9WgXcQ",
        "https://www.youtube.com/live/dQw4w9WgXcQ?feature=share",
    ])
    def test_youtube_forms(self, value):
        assert extract_youtube_id(value) == "dQw4w9WgXcQ"
        assert normalize_youtube_url(value) == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

    @pytest.mark.parametrize("value", [
        "",
        "https://vimeo.com/76979871",
        "https://www.youtube.com/channel/UCabc",
        "https://youtu.be/short",
    ])
    def test_not_youtube(self, value):
        assert extract_youtube_id(value) is None

    def test_normalize_video_url(self):
        assert normalize_video_url("https://vimeo.com/76979871") == "https://vimeo.com/76979871"
        assert normalize_video_url("mailto:someone@example.com") is None


class TestDates:
    """Tests for timestamp helpers."""

    @pytest.mark.parametrize("value,expected", [
        ("2026-01-31T09:00:00", datetime(2026, 1, 31, 9, 0)),
        ("2026-01-31 09:00", datetime(2026, 1, 31, 9, 0)),
        ("2026-01-31", datetime(2026, 1, 31)),
        ("2026-01-31T09:00:00Z", datetime(2026, 1, 31, 9, 0)),
        ("2026-01-31T09:00:00-03:00", datetime(2026, 1, 31, 9, 0)),
        (date(2026, 1, 31), datetime(2026, 1, 31)),
        (datetime(2026, 1, 31, 9, 0), datetime(2026, 1, 31, 9, 0)),
    ])
    def test_parse_timestamp(self, value, expected):
        assert parse_timestamp(value) == expected

    def test_parse_date_only_with_default_time(self):
        assert parse_timestamp("2026-01-31", default_time=time(9, 30)) == datetime(2026, 1, 31, 9, 30)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_parse_empty(self, value):
        assert parse_timestamp(value) is None

    @pytest.mark.parametrize("value", ["31/01/2026", "2026-02-30", 20260131])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)

    def test_days_in_month(self):
        assert days_in_month(2024, 2) == 29
        assert days_in_month(2026, 2) == 28
        assert days_in_month(2026, 4) == 30

    def test_shift_month(self):
        assert shift_month(2026, 11, 3) == (2027, 2)
        assert shift_month(2026, 1, -1) == (2025, 12)

    def test_sunday_weekday(self):
        assert sunday_weekday(date(2026, 3, 15)) == 0
        assert sunday_weekday(date(2026, 1, 31)) == 6

    @freeze_time("2026-03-01 12:00:00")
    def test_utc_now_is_naive_utc(self):
        now = utc_now()
        assert now == datetime(2026, 3, 1, 12, 0)
        assert now.tzinfo is None
