from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from booking_assistant.domain.entities.session import Session

BOOKING_FLOW = "booking_flow"
BOOKING_CONFIRMED = "booking_confirmed"
CHAT = "chat"


@dataclass(frozen=True)
class ChatReply:
    type: str
    message: str
    step: str | None = None
    is_complete: bool | None = None
    booking_id: str | None = None
    data: dict[str, Any] | None = None


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one conversational turn: the reply plus the session to persist."""

    reply: ChatReply
    session: Session
