from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from booking_assistant.domain.entities.session import BookingStep


@dataclass(frozen=True)
class Extraction:
    valid: bool
    value: Any = None
    reason: str | None = None

    @classmethod
    def ok(cls, value: Any) -> "Extraction":
        return cls(valid=True, value=value)

    @classmethod
    def invalid(cls, reason: str) -> "Extraction":
        return cls(valid=False, reason=reason)


class FieldExtractorPort(ABC):
    @abstractmethod
    def extract(self, step: BookingStep, raw_text: str, now: datetime) -> Extraction:
        """
        Parse the field targeted by `step` out of a free-text user turn.

        Requirements:
        - Pure: the same (step, raw_text, now) always yields the same result
        - Never mutates session state
        - Date/times come back timezone-aware; naive input is localised in the
          configured business timezone
        """
        raise NotImplementedError
