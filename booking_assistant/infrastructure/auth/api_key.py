from __future__ import annotations

import hmac
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from booking_assistant.application.exceptions import UnauthorizedError

MIN_KEY_LENGTH = 10

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WidgetAuth:
    authenticated: bool
    source: str  # "public" | "widget"


def _key_prefix(api_key: str) -> str:
    return api_key[:8] + "..."


def is_known_key(api_key: str, allowed_keys: Iterable[str]) -> bool:
    candidate = api_key.encode("utf-8")
    matched = False
    for allowed in allowed_keys:
        # No early exit so timing does not reveal which entry matched.
        if hmac.compare_digest(candidate, allowed.strip().encode("utf-8")):
            matched = True
    return matched


def verify_widget_api_key(api_key: str | None, allowed_keys: Iterable[str], env: str) -> WidgetAuth:
    """
    Gatekeeper for widget traffic.

    No key means public access. A present key must look like a key, and
    outside dev/local it must be one of the configured widget keys.
    """
    if not api_key:
        return WidgetAuth(authenticated=False, source="public")

    if len(api_key) < MIN_KEY_LENGTH:
        raise UnauthorizedError("Invalid API key format", code="INVALID_API_KEY")

    if not is_known_key(api_key, allowed_keys):
        if env.lower() in {"dev", "local"}:
            logger.warning("Unknown widget API key; accepting in dev mode", extra={"reason": _key_prefix(api_key)})
        else:
            logger.warning("Invalid widget API key attempted", extra={"reason": _key_prefix(api_key)})
            raise UnauthorizedError("Invalid API key")

    return WidgetAuth(authenticated=True, source="widget")
