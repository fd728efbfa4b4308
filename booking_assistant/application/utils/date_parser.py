from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

VAGUE_TIME_RANGES = {
    "morning": (9, 12),
    "afternoon": (12, 17),
    "evening": (17, 20),
    "night": (18, 21),
}

DAY_NAMES = {
    "monday": 0,
    "mon": 0,
    "tuesday": 1,
    "tue": 1,
    "tues": 1,
    "wednesday": 2,
    "wed": 2,
    "thursday": 3,
    "thu": 3,
    "thurs": 3,
    "friday": 4,
    "fri": 4,
    "saturday": 5,
    "sat": 5,
    "sunday": 6,
    "sun": 6,
}

MONTH_NAMES = {
    "january": 1,
    "jan": 1,
    "february": 2,
    "feb": 2,
    "march": 3,
    "mar": 3,
    "april": 4,
    "apr": 4,
    "may": 5,
    "june": 6,
    "jun": 6,
    "july": 7,
    "jul": 7,
    "august": 8,
    "aug": 8,
    "september": 9,
    "sept": 9,
    "sep": 9,
    "october": 10,
    "oct": 10,
    "november": 11,
    "nov": 11,
    "december": 12,
    "dec": 12,
}

_MONTH_ALT = "|".join(sorted(MONTH_NAMES, key=len, reverse=True))
_DAY_ALT = "|".join(sorted(DAY_NAMES, key=len, reverse=True))

_TIME_PATTERNS = [
    re.compile(r"\b(\d{1,2}):(\d{2})\s*(am|pm)?\b"),
    re.compile(r"\b(\d{1,2})\s*(am|pm)\b"),
]
_NOON_PATTERN = re.compile(r"\b(noon|midday)\b")

_MONTH_DAY = re.compile(rf"\b({_MONTH_ALT})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?\b")
_DAY_MONTH = re.compile(rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?({_MONTH_ALT})\b")
_ISO_DATE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
_NUMERIC_DATE = re.compile(r"\b(\d{1,2})/(\d{1,2})(?:/(\d{2,4}))?\b")
_WEEKDAY = re.compile(rf"\b(next\s+|this\s+)?({_DAY_ALT})\b")


def parse_iso_datetime(text: str, timezone: ZoneInfo) -> datetime | None:
    """Parse an explicit ISO-8601 timestamp. Naive values are localised in `timezone`."""
    candidate = text.strip()
    if "T" not in candidate and " " not in candidate:
        return None
    try:
        parsed = datetime.fromisoformat(candidate.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone)
    return parsed


def parse_date_preference(text: str, reference_date: date) -> date | None:
    """Parse date preference from text. Returns date or None if not found."""
    normalized = _strip_times(text.lower().strip())

    match = _ISO_DATE.search(normalized)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            return None

    for pattern, month_group, day_group in ((_MONTH_DAY, 1, 2), (_DAY_MONTH, 2, 1)):
        match = pattern.search(normalized)
        if match:
            return _roll_forward(
                reference_date,
                MONTH_NAMES[match.group(month_group)],
                int(match.group(day_group)),
                None,
            )

    # Day-first numeric dates (20/10, 20/10/2026)
    match = _NUMERIC_DATE.search(normalized)
    if match:
        year = int(match.group(3)) if match.group(3) else None
        if year is not None and year < 100:
            year += 2000
        return _roll_forward(reference_date, int(match.group(2)), int(match.group(1)), year)

    if "day after tomorrow" in normalized:
        return reference_date + timedelta(days=2)

    if re.search(r"\btoday\b|\btonight\b", normalized):
        return reference_date

    if re.search(r"\btomorrow\b|\btmrw\b", normalized):
        return reference_date + timedelta(days=1)

    match = _WEEKDAY.search(normalized)
    if match:
        day_num = DAY_NAMES[match.group(2)]
        days_ahead = (day_num - reference_date.weekday()) % 7
        if days_ahead == 0:
            days_ahead = 7
        return reference_date + timedelta(days=days_ahead)

    if re.search(r"\bnext week\b", normalized):
        return reference_date + timedelta(days=7)

    return None


def parse_time_preference(text: str) -> tuple[int, int] | None:
    """Parse time preference from text. Returns (hour, minute) or None."""
    normalized = text.lower().strip()

    for pattern in _TIME_PATTERNS:
        match = pattern.search(normalized)
        if match:
            hour = int(match.group(1))
            minute = int(match.group(2)) if match.lastindex >= 2 and match.group(2).isdigit() else 0
            am_pm = match.group(match.lastindex) if match.group(match.lastindex) in ("am", "pm") else None

            if am_pm == "pm" and hour != 12:
                hour += 12
            elif am_pm == "am" and hour == 12:
                hour = 0

            if 0 <= hour <= 23 and 0 <= minute <= 59:
                return (hour, minute)

    if _NOON_PATTERN.search(normalized):
        return (12, 0)

    for word in VAGUE_TIME_RANGES:
        if re.search(rf"\b{word}\b", normalized):
            start_hour, _ = map_vague_time_to_range(word)
            return (start_hour, 0)

    return None


def map_vague_time_to_range(vague_time: str) -> tuple[int, int] | None:
    """Map vague time description to hour range. Returns (start_hour, end_hour) or None."""
    normalized = vague_time.lower().strip()
    return VAGUE_TIME_RANGES.get(normalized)


def resolve_datetime(text: str, now: datetime, timezone: ZoneInfo, default_hour: int) -> datetime | None:
    """
    Resolve a natural-language or ISO date/time to a timezone-aware instant.

    A date without a time gets `default_hour`; a time without a date means today
    if still ahead of `now`, otherwise tomorrow. Everything is interpreted in
    `timezone`.
    """
    explicit = parse_iso_datetime(text, timezone)
    if explicit is not None:
        return explicit

    local_now = now.astimezone(timezone)
    parsed_date = parse_date_preference(text, local_now.date())
    parsed_time = parse_time_preference(text)

    if parsed_date is None and parsed_time is None:
        return None

    hour, minute = parsed_time if parsed_time else (default_hour, 0)
    if parsed_date is None:
        candidate = datetime.combine(local_now.date(), time(hour, minute), tzinfo=timezone)
        if candidate <= local_now:
            candidate = datetime.combine(local_now.date() + timedelta(days=1), time(hour, minute), tzinfo=timezone)
        return candidate

    return datetime.combine(parsed_date, time(hour, minute), tzinfo=timezone)


def parse_duration(text: str) -> int | None:
    """Parse a meeting length in minutes. Returns None when no length is stated."""
    normalized = text.lower().strip()

    match = re.search(r"(\d+(?:\.\d+)?)\s*(h|hr|hrs|hour|hours|m|min|mins|minute|minutes)?\b", normalized)
    if match:
        amount = float(match.group(1))
        unit = match.group(2) or ""
        if unit.startswith("h"):
            amount *= 60
        return int(round(amount))

    if "half an hour" in normalized or "half hour" in normalized:
        return 30
    if "three quarters" in normalized:
        return 45
    if "quarter" in normalized:
        return 15
    if re.search(r"\b(an|one) hour\b", normalized) or normalized == "hour":
        return 60

    return None


def _strip_times(text: str) -> str:
    for pattern in _TIME_PATTERNS:
        text = pattern.sub(" ", text)
    return text


def _roll_forward(reference_date: date, month: int, day: int, year: int | None) -> date | None:
    explicit_year = year is not None
    year = year if explicit_year else reference_date.year
    try:
        result = date(year, month, day)
    except ValueError:
        return None
    if not explicit_year and result < reference_date:
        try:
            result = date(year + 1, month, day)
        except ValueError:
            return None
    return result
