from __future__ import annotations

import pytest

from booking_assistant.application.exceptions import RateLimitExceededError
from booking_assistant.application.utils.rate_limiter import CHAT_SCOPE, RateLimit, RateLimiter


class ManualTimer:
    def __init__(self) -> None:
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value


def test_requests_over_the_limit_are_rejected():
    timer = ManualTimer()
    limiter = RateLimiter({CHAT_SCOPE: RateLimit(2, 60, "Too many chat requests")}, now=timer)

    limiter.hit(CHAT_SCOPE, "10.0.0.1")
    timer.value += 10
    limiter.hit(CHAT_SCOPE, "10.0.0.1")

    with pytest.raises(RateLimitExceededError) as exc:
        limiter.hit(CHAT_SCOPE, "10.0.0.1")
    assert exc.value.retry_after == 50
    assert exc.value.retryable is True
    assert str(exc.value) == "Too many chat requests"


def test_window_slides_forward():
    timer = ManualTimer()
    limiter = RateLimiter({CHAT_SCOPE: RateLimit(1, 60)}, now=timer)

    limiter.hit(CHAT_SCOPE, "10.0.0.1")
    timer.value += 60
    limiter.hit(CHAT_SCOPE, "10.0.0.1")


def test_clients_and_scopes_are_counted_separately():
    limiter = RateLimiter({CHAT_SCOPE: RateLimit(1, 60)}, now=ManualTimer())

    limiter.hit(CHAT_SCOPE, "10.0.0.1")
    limiter.hit(CHAT_SCOPE, "10.0.0.2")
    for _ in range(5):
        limiter.hit("unlimited", "10.0.0.1")


def test_trusted_keys_are_never_limited():
    limiter = RateLimiter({CHAT_SCOPE: RateLimit(1, 60)}, exempt_keys=["127.0.0.1"], now=ManualTimer())

    for _ in range(5):
        limiter.hit(CHAT_SCOPE, "127.0.0.1")


def test_idle_buckets_are_swept():
    timer = ManualTimer()
    limiter = RateLimiter({CHAT_SCOPE: RateLimit(5, 60)}, now=timer)
    for n in range(20):
        limiter.hit(CHAT_SCOPE, f"10.0.0.{n}")
    assert limiter.active_count() == 20

    timer.value += 120
    limiter.hit(CHAT_SCOPE, "10.0.1.1")

    assert limiter.active_count() == 1
