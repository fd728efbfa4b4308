from __future__ import annotations

import re
from datetime import datetime
from zoneinfo import ZoneInfo

from booking_assistant.application.ports.field_extractor import Extraction, FieldExtractorPort
from booking_assistant.application.utils.booking_rules import (
    EMAIL_PATTERN,
    MAX_COMPANY_LENGTH,
    MAX_INQUIRY_LENGTH,
    MAX_NAME_LENGTH,
)
from booking_assistant.application.utils.date_parser import parse_duration, resolve_datetime
from booking_assistant.domain.entities.session import BookingStep

MIN_NAME_LENGTH = 2

NAME_PREFIXES = re.compile(
    r"^(?:(?:hi|hello|hey)[\s,!]*)?(?:my name is|name is|name:|i am|i'm|this is|it's|it is)\s+",
    re.IGNORECASE,
)
EMAIL_SEARCH = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
DEFAULT_DURATION_WORDS = ("default", "whatever", "any", "not sure", "don't mind", "dont mind", "up to you", "you choose")


class RuleBasedFieldExtractor(FieldExtractorPort):
    def __init__(self, timezone: ZoneInfo, default_hour: int = 14, default_duration: int = 30) -> None:
        self._timezone = timezone
        self._default_hour = default_hour
        self._default_duration = default_duration

    def extract(self, step: BookingStep, raw_text: str, now: datetime) -> Extraction:
        text = (raw_text or "").strip()

        if step is BookingStep.AWAIT_NAME:
            return self._extract_name(text)
        if step is BookingStep.AWAIT_EMAIL:
            return self._extract_email(text)
        if step is BookingStep.AWAIT_COMPANY:
            return _bounded_text(text, "company name", MAX_COMPANY_LENGTH)
        if step is BookingStep.AWAIT_INQUIRY:
            return _bounded_text(text, "description", MAX_INQUIRY_LENGTH)
        if step is BookingStep.AWAIT_DATETIME:
            return self._extract_datetime(text, now)
        if step is BookingStep.AWAIT_DURATION:
            return self._extract_duration(text)

        raise ValueError(f"No field is collected at step {step.value}")

    def _extract_name(self, text: str) -> Extraction:
        name = NAME_PREFIXES.sub("", text).strip().rstrip(".!")
        if not name:
            return Extraction.invalid("I didn't catch your name.")
        if "@" in name:
            return Extraction.invalid("That looks like an email address rather than a name.")
        if len(name) < MIN_NAME_LENGTH or len(name) > MAX_NAME_LENGTH:
            return Extraction.invalid(f"Names need to be between {MIN_NAME_LENGTH} and {MAX_NAME_LENGTH} characters.")
        if not all(ch.isalpha() or ch in " .'-" for ch in name):
            return Extraction.invalid("Names can only contain letters, spaces, apostrophes and hyphens.")
        return Extraction.ok(name)

    def _extract_email(self, text: str) -> Extraction:
        match = EMAIL_SEARCH.search(text)
        if not match or not EMAIL_PATTERN.match(match.group(0)):
            return Extraction.invalid(f'"{text}" doesn\'t look like a valid email address.')
        return Extraction.ok(match.group(0).lower())

    def _extract_datetime(self, text: str, now: datetime) -> Extraction:
        if not text:
            return Extraction.invalid("I need a date and time for the meeting.")
        resolved = resolve_datetime(text, now, self._timezone, self._default_hour)
        if resolved is None:
            return Extraction.invalid(
                "I couldn't work out a date and time from that. "
                'Try something like "tomorrow at 2pm" or "2026-11-03T14:00".'
            )
        return Extraction.ok(resolved)

    def _extract_duration(self, text: str) -> Extraction:
        minutes = parse_duration(text)
        if minutes is None:
            lowered = text.lower()
            if not lowered or any(word in lowered for word in DEFAULT_DURATION_WORDS):
                return Extraction.ok(self._default_duration)
            return Extraction.invalid("Please give the meeting length in minutes.")
        if minutes <= 0:
            return Extraction.invalid("The meeting length must be a positive number of minutes.")
        return Extraction.ok(minutes)


def _bounded_text(text: str, label: str, limit: int) -> Extraction:
    if not text:
        return Extraction.invalid(f"The {label} can't be empty.")
    if len(text) > limit:
        return Extraction.invalid(f"The {label} must be at most {limit} characters.")
    return Extraction.ok(text)
