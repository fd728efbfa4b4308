from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from booking_assistant.application.utils.date_parser import (
    map_vague_time_to_range,
    parse_date_preference,
    parse_duration,
    parse_time_preference,
    resolve_datetime,
)

LONDON = ZoneInfo("Europe/London")
MONDAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)  # 11:00 London


@pytest.mark.parametrize(
    "text,expected",
    [
        ("tomorrow", date(2026, 10, 20)),
        ("day after tomorrow", date(2026, 10, 21)),
        ("today please", MONDAY),
        ("friday", date(2026, 10, 23)),
        ("next Wednesday", date(2026, 10, 21)),
        ("monday", date(2026, 10, 26)),
        ("next week", date(2026, 10, 26)),
        ("October 22", date(2026, 10, 22)),
        ("3rd of November", date(2026, 11, 3)),
        ("5 January", date(2027, 1, 5)),
        ("20/11", date(2026, 11, 20)),
        ("4/11/2026", date(2026, 11, 4)),
        ("2026-11-02", date(2026, 11, 2)),
    ],
)
def test_parse_date_preference(text, expected):
    assert parse_date_preference(text, MONDAY) == expected


def test_explicit_date_wins_over_weekday_name():
    assert parse_date_preference("Thursday 29 October", MONDAY) == date(2026, 10, 29)


def test_parse_date_preference_returns_none_without_date():
    assert parse_date_preference("whenever suits you", MONDAY) is None
    assert parse_date_preference("31/02", MONDAY) is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("2pm", (14, 0)),
        ("at 9:30 am", (9, 30)),
        ("14:00", (14, 0)),
        ("12am", (0, 0)),
        ("12pm", (12, 0)),
        ("around noon", (12, 0)),
        ("in the afternoon", (12, 0)),
        ("morning", (9, 0)),
    ],
)
def test_parse_time_preference(text, expected):
    assert parse_time_preference(text) == expected


def test_parse_time_preference_returns_none_without_time():
    assert parse_time_preference("tomorrow") is None


def test_map_vague_time_to_range():
    assert map_vague_time_to_range("Afternoon") == (12, 17)
    assert map_vague_time_to_range("lunchtime") is None


def test_resolve_relative_day_and_time():
    assert resolve_datetime("tomorrow at 2pm", NOW, LONDON, 14) == datetime(2026, 10, 20, 14, 0, tzinfo=LONDON)


def test_resolve_date_without_time_uses_default_hour():
    assert resolve_datetime("Thursday", NOW, LONDON, 14) == datetime(2026, 10, 22, 14, 0, tzinfo=LONDON)


def test_resolve_time_without_date():
    # 3pm is still ahead today; 9am has passed, so it means tomorrow.
    assert resolve_datetime("3pm", NOW, LONDON, 14) == datetime(2026, 10, 19, 15, 0, tzinfo=LONDON)
    assert resolve_datetime("9am", NOW, LONDON, 14) == datetime(2026, 10, 20, 9, 0, tzinfo=LONDON)


def test_resolve_iso_with_offset_and_naive():
    utc_value = resolve_datetime("2026-10-21T10:00:00Z", NOW, LONDON, 14)
    assert utc_value == datetime(2026, 10, 21, 10, 0, tzinfo=timezone.utc)

    naive_value = resolve_datetime("2026-10-21T10:00", NOW, LONDON, 14)
    assert naive_value.tzinfo is LONDON
    assert naive_value.hour == 10


def test_resolve_is_deterministic_for_same_now():
    first = resolve_datetime("next friday at 10am", NOW, LONDON, 14)
    second = resolve_datetime("next friday at 10am", NOW, LONDON, 14)
    assert first == second == datetime(2026, 10, 23, 10, 0, tzinfo=LONDON)


def test_resolve_returns_none_for_unparseable_text():
    assert resolve_datetime("whenever is fine", NOW, LONDON, 14) is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("30", 30),
        ("45 minutes", 45),
        ("1 hour", 60),
        ("1.5 hours", 90),
        ("half an hour", 30),
        ("a quarter of an hour", 15),
        ("three quarters of an hour", 45),
        ("an hour please", 60),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


def test_parse_duration_returns_none_without_length():
    assert parse_duration("not sure") is None
