class BookingAssistantError(RuntimeError):
    """Base class for errors surfaced to callers."""

    code = "INTERNAL_ERROR"
    retryable = False


class ValidationError(BookingAssistantError):
    """Raised when booking data fails validation."""

    code = "VALIDATION_ERROR"

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) or "Invalid booking data")
        self.errors = list(errors)


class ConflictError(BookingAssistantError):
    """Raised when the requested slot overlaps an existing booking."""

    code = "BOOKING_CONFLICT"


class NotFoundError(BookingAssistantError):
    """Raised when a booking id is unknown."""

    code = "BOOKING_NOT_FOUND"


class InvalidStatusTransitionError(BookingAssistantError):
    """Raised when a status change is not allowed (e.g. reopening a cancelled booking)."""

    code = "INVALID_STATUS_TRANSITION"


class UpstreamError(BookingAssistantError):
    """Raised when a collaborator fails (network errors, bad responses)."""

    code = "UPSTREAM_ERROR"


class UpstreamTimeoutError(UpstreamError):
    """Raised when a collaborator does not answer in time. The turn can be retried."""

    code = "UPSTREAM_TIMEOUT"
    retryable = True


class StoreUnavailableError(BookingAssistantError):
    """Raised when session state cannot be read or written."""

    code = "STORE_UNAVAILABLE"


class SessionBusyError(BookingAssistantError):
    """Raised when another turn for the same session holds its lock for too long."""

    code = "SESSION_BUSY"
    retryable = True


class RateLimitExceededError(BookingAssistantError):
    """Raised when a client sends more requests than its window allows."""

    code = "RATE_LIMIT_EXCEEDED"
    retryable = True

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class LLMUpstreamError(RuntimeError):
    """Raised when LLM provider fails (timeouts, network errors, service unavailable)."""
    pass


class UnauthorizedError(BookingAssistantError):
    """Raised when a widget API key is malformed or not recognised."""

    code = "UNAUTHORIZED"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code:
            self.code = code
