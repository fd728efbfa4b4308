from __future__ import annotations

import re

BOOKING_KEYWORDS = (
    "book",
    "schedule",
    "appointment",
    "meeting",
    "consultation",
    "consult",
    "reserve",
    "hire",
    "quote",
)

BOOKING_PATTERNS = (
    "set up a call",
    "arrange a call",
    "get started",
    "work together",
    "speak to someone",
    "talk to someone",
)

AFFIRMATIVE_WORDS = (
    "yes",
    "yeah",
    "yep",
    "yup",
    "sure",
    "ok",
    "okay",
    "confirm",
    "confirmed",
    "correct",
    "right",
    "perfect",
    "great",
    "good",
)

AFFIRMATIVE_PATTERNS = (
    "book it",
    "go ahead",
    "looks good",
    "sounds good",
    "that s right",
    "please do",
)

NEGATIVE_WORDS = (
    "no",
    "nope",
    "nah",
    "not",
    "wrong",
    "incorrect",
    "change",
    "different",
    "another",
)

# The whole message has to be the command, so free text mentioning "restart" is kept as data.
RESTART_COMMAND = re.compile(
    r"^(?:(?:please|can we|could we|let s|lets|i want to|i d like to)\s+)?"
    r"(?:start over|start again|begin again|restart|cancel (?:my |the )?booking)"
    r"(?:\s+please)?$"
)


def normalize_text(text: str) -> str:
    normalized = text.lower().replace("'", " ")
    normalized = re.sub(r"[^a-z0-9@.\s]", " ", normalized)
    normalized = re.sub(r"\s+", " ", normalized).strip()
    return normalized


def _tokens(text: str) -> set[str]:
    return set(normalize_text(text).replace(".", " ").split())


def is_booking_request(text: str) -> bool:
    """
    Check if the user asks to book or schedule something.
    Keywords match on word starts, so "booking" and "scheduling" count.
    """
    normalized = normalize_text(text)
    if any(pattern in normalized for pattern in BOOKING_PATTERNS):
        return True
    return any(re.search(rf"\b{keyword}", normalized) for keyword in BOOKING_KEYWORDS)


def is_negative(text: str) -> bool:
    tokens = _tokens(text)
    return any(word in tokens for word in NEGATIVE_WORDS)


def _leads_with_affirmative(normalized: str) -> bool:
    first_word = normalized.split(" ", 1)[0]
    return first_word in AFFIRMATIVE_WORDS or any(normalized.startswith(p) for p in AFFIRMATIVE_PATTERNS)


def is_affirmative(text: str) -> bool:
    """
    Explicit agreement. A message that opens with agreement counts ("yes, no changes needed");
    otherwise a negation anywhere wins ("no, that's not right").
    """
    normalized = normalize_text(text)
    if _leads_with_affirmative(normalized):
        return True
    if is_negative(text):
        return False
    if any(pattern in normalized for pattern in AFFIRMATIVE_PATTERNS):
        return True
    tokens = _tokens(text)
    return any(word in tokens for word in AFFIRMATIVE_WORDS)


def is_restart_request(text: str) -> bool:
    words = normalize_text(text).replace(".", " ").split()
    return RESTART_COMMAND.match(" ".join(words)) is not None
