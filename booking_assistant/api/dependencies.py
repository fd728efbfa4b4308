from fastapi import Depends, Header, Query, Request

from booking_assistant.application.utils.rate_limiter import RateLimiter
from booking_assistant.core.config import settings
from booking_assistant.infrastructure.auth.api_key import WidgetAuth, verify_widget_api_key
from booking_assistant.wiring.dependencies import get_rate_limiter


def require_api_key(
    x_api_key: str | None = Header(None, alias="x-api-key"),
    api_key: str | None = Query(None, alias="apiKey"),
) -> WidgetAuth:
    return verify_widget_api_key(x_api_key or api_key, settings.WIDGET_API_KEYS, settings.ENV)


def rate_limited(scope: str):
    """Per-IP request limit for one group of endpoints."""

    def check(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
        client_ip = request.client.host if request.client else "unknown"
        limiter.hit(scope, client_ip)

    return check
