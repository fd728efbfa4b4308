from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from booking_assistant.application.ports.clock import ClockPort
from booking_assistant.application.use_cases.booking_flow import BookingFlowUseCase
from booking_assistant.application.use_cases.extract_field import RuleBasedFieldExtractor
from booking_assistant.application.use_cases.handle_chat_message import HandleChatMessageUseCase
from booking_assistant.application.use_cases.manage_bookings import ManageBookingsUseCase
from booking_assistant.application.utils.booking_rules import BookingRules
from booking_assistant.application.utils.session_locks import SessionLocks
from booking_assistant.infrastructure.bookings.memory_repository import MemoryBookingRepository
from booking_assistant.infrastructure.calendar.business_calendar import BusinessCalendarAvailability
from booking_assistant.infrastructure.llm.mock_responder import MockChatResponder
from booking_assistant.infrastructure.store.memory_store import MemorySessionStore

LONDON = ZoneInfo("Europe/London")

# Monday 19 October 2026, 11:00 in London (BST).
NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


class FixedClock(ClockPort):
    def __init__(self, now: datetime = NOW) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs: float) -> None:
        self._now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def rules() -> BookingRules:
    return BookingRules(timezone=LONDON)


@pytest.fixture
def repository(rules, clock) -> MemoryBookingRepository:
    return MemoryBookingRepository(rules=rules, clock=clock, lock_timeout=1.0)


@pytest.fixture
def availability(repository, rules, clock) -> BusinessCalendarAvailability:
    return BusinessCalendarAvailability(repository=repository, rules=rules, clock=clock)


@pytest.fixture
def extractor() -> RuleBasedFieldExtractor:
    return RuleBasedFieldExtractor(timezone=LONDON, default_hour=14, default_duration=30)


@pytest.fixture
def booking_flow(extractor, availability, repository, rules, clock) -> BookingFlowUseCase:
    return BookingFlowUseCase(
        extractor=extractor,
        availability=availability,
        repository=repository,
        rules=rules,
        clock=clock,
        contact_email="hello@example.com",
    )


@pytest.fixture
def session_store(clock) -> MemorySessionStore:
    return MemorySessionStore(clock=clock, ttl_seconds=3600)


@pytest.fixture
def chat_handler(session_store, booking_flow) -> HandleChatMessageUseCase:
    return HandleChatMessageUseCase(
        store=session_store,
        booking_flow=booking_flow,
        responder=MockChatResponder(business_name="Metalogics", contact_email="hello@example.com"),
        locks=SessionLocks(timeout_seconds=1.0),
    )


@pytest.fixture
def manage_bookings(repository, availability, rules, clock) -> ManageBookingsUseCase:
    return ManageBookingsUseCase(repository=repository, availability=availability, rules=rules, clock=clock)
