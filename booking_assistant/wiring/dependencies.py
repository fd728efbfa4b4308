from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from booking_assistant.core.config import settings
from booking_assistant.application.ports.availability import AvailabilityPort
from booking_assistant.application.ports.booking_repository import BookingLedgerPort, BookingRepositoryPort
from booking_assistant.application.ports.chat_responder import ChatResponderPort
from booking_assistant.application.ports.clock import ClockPort
from booking_assistant.application.ports.session_store import SessionStorePort
from booking_assistant.application.use_cases.booking_flow import BookingFlowUseCase
from booking_assistant.application.use_cases.extract_field import RuleBasedFieldExtractor
from booking_assistant.application.use_cases.handle_chat_message import HandleChatMessageUseCase
from booking_assistant.application.use_cases.manage_bookings import ManageBookingsUseCase
from booking_assistant.application.utils.booking_rules import BookingRules
from booking_assistant.application.utils.rate_limiter import (
    AVAILABILITY_SCOPE,
    BOOKING_SCOPE,
    CHAT_SCOPE,
    GENERAL_SCOPE,
    RateLimit,
    RateLimiter,
)
from booking_assistant.application.utils.session_locks import SessionLocks
from booking_assistant.infrastructure.bookings.backend_client import BookingBackendClient
from booking_assistant.infrastructure.bookings.http_repository import HttpBookingRepository
from booking_assistant.infrastructure.bookings.memory_repository import MemoryBookingRepository
from booking_assistant.infrastructure.calendar.business_calendar import BusinessCalendarAvailability
from booking_assistant.infrastructure.calendar.http_availability import HttpAvailabilityService
from booking_assistant.infrastructure.clock.system_clock import SystemClock
from booking_assistant.infrastructure.llm.mock_responder import MockChatResponder
from booking_assistant.infrastructure.llm.openai_responder import OpenAIChatResponder
from booking_assistant.infrastructure.store.json_store import JsonSessionStore
from booking_assistant.infrastructure.store.memory_store import MemorySessionStore


logger = logging.getLogger(__name__)

_session_store: SessionStorePort | None = None


def _uses_remote_backend() -> bool:
    return bool(settings.BACKEND_BASE_URL and settings.BACKEND_BASE_URL.strip())


@lru_cache
def get_clock() -> ClockPort:
    return SystemClock()


@lru_cache
def get_rules() -> BookingRules:
    return BookingRules(
        timezone=ZoneInfo(settings.BUSINESS_TIMEZONE),
        open_hour=settings.BUSINESS_OPEN_HOUR,
        close_hour=settings.BUSINESS_CLOSE_HOUR,
        business_days=tuple(settings.BUSINESS_DAYS),
        allowed_durations=tuple(sorted(settings.ALLOWED_DURATIONS)),
        default_duration=settings.DEFAULT_DURATION_MINUTES,
        slot_interval=settings.SLOT_INTERVAL_MINUTES,
    )


def get_session_store() -> SessionStorePort:
    global _session_store
    if _session_store is None:
        if settings.STORE_PROVIDER.lower() == "json":
            _session_store = JsonSessionStore(
                clock=get_clock(),
                data_dir=settings.STORE_DATA_DIR,
                ttl_seconds=settings.SESSION_TTL_SECONDS,
            )
        else:
            _session_store = MemorySessionStore(clock=get_clock(), ttl_seconds=settings.SESSION_TTL_SECONDS)
        logger.info("Session store ready: %s", type(_session_store).__name__)
    return _session_store


@lru_cache
def get_backend_client() -> BookingBackendClient:
    return BookingBackendClient()


@lru_cache
def get_booking_ledger() -> BookingLedgerPort:
    return MemoryBookingRepository(
        rules=get_rules(),
        clock=get_clock(),
        lock_timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )


@lru_cache
def get_booking_repository() -> BookingRepositoryPort:
    if _uses_remote_backend():
        logger.info("Using remote booking backend at %s", settings.BACKEND_BASE_URL)
        return HttpBookingRepository(backend=get_backend_client())
    return get_booking_ledger()


@lru_cache
def get_availability() -> AvailabilityPort:
    if _uses_remote_backend():
        return HttpAvailabilityService(backend=get_backend_client(), timezone=get_rules().timezone)
    return BusinessCalendarAvailability(repository=get_booking_ledger(), rules=get_rules(), clock=get_clock())


@lru_cache
def get_chat_responder() -> ChatResponderPort:
    if settings.OPENAI_API_KEY and settings.OPENAI_API_KEY.strip():
        return OpenAIChatResponder(clock=get_clock(), ttl_seconds=settings.SESSION_TTL_SECONDS)
    return MockChatResponder(business_name=settings.BUSINESS_NAME, contact_email=settings.CONTACT_EMAIL)


@lru_cache
def get_session_locks() -> SessionLocks:
    return SessionLocks(timeout_seconds=settings.SESSION_LOCK_TIMEOUT_SECONDS)


@lru_cache
def get_booking_flow() -> BookingFlowUseCase:
    rules = get_rules()
    return BookingFlowUseCase(
        extractor=RuleBasedFieldExtractor(
            timezone=rules.timezone,
            default_hour=settings.DEFAULT_MEETING_HOUR,
            default_duration=rules.default_duration,
        ),
        availability=get_availability(),
        repository=get_booking_repository(),
        rules=rules,
        clock=get_clock(),
        contact_email=settings.CONTACT_EMAIL,
    )


def get_handle_chat_use_case() -> HandleChatMessageUseCase:
    return HandleChatMessageUseCase(
        store=get_session_store(),
        booking_flow=get_booking_flow(),
        responder=get_chat_responder(),
        locks=get_session_locks(),
    )


def get_manage_bookings_use_case() -> ManageBookingsUseCase:
    return ManageBookingsUseCase(
        repository=get_booking_repository(),
        availability=get_availability(),
        rules=get_rules(),
        clock=get_clock(),
    )


def rate_limits_from_settings() -> dict[str, RateLimit]:
    if not settings.RATE_LIMIT_ENABLED:
        return {}
    return {
        CHAT_SCOPE: RateLimit(
            settings.RATE_LIMIT_CHAT,
            settings.RATE_LIMIT_CHAT_WINDOW_SECONDS,
            "Too many chat requests, please slow down",
        ),
        BOOKING_SCOPE: RateLimit(
            settings.RATE_LIMIT_BOOKING,
            settings.RATE_LIMIT_BOOKING_WINDOW_SECONDS,
            "Too many booking attempts, please try again later",
        ),
        AVAILABILITY_SCOPE: RateLimit(
            settings.RATE_LIMIT_AVAILABILITY,
            settings.RATE_LIMIT_AVAILABILITY_WINDOW_SECONDS,
            "Too many availability check requests",
        ),
        GENERAL_SCOPE: RateLimit(settings.RATE_LIMIT_GENERAL, settings.RATE_LIMIT_GENERAL_WINDOW_SECONDS),
    }


@lru_cache
def get_rate_limiter() -> RateLimiter:
    return RateLimiter(rate_limits_from_settings(), exempt_keys=settings.RATE_LIMIT_TRUSTED_IPS)
