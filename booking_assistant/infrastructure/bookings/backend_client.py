from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_assistant.application.exceptions import (
    ConflictError,
    NotFoundError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)
from booking_assistant.core.config import settings


class BookingBackendClient:
    """
    Thin httpx wrapper around the remote booking backend.

    Maps backend answers onto application errors:
        400 -> ValidationError (with the backend's detail messages)
        404 -> NotFoundError
        409 -> ConflictError
        timeouts -> UpstreamTimeoutError
        anything else -> UpstreamError
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url or settings.BACKEND_BASE_URL or "").rstrip("/")
        self._api_key = api_key or settings.BACKEND_API_KEY
        self._client = client or httpx.Client(
            timeout=timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS
        )
        self._logger = logging.getLogger(__name__)

        if not self._base_url:
            raise ValueError("BACKEND_BASE_URL is required for the HTTP booking backend")

    def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the `data` object of a successful envelope."""
        url = f"{self._base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["x-api-key"] = self._api_key

        try:
            response = self._client.request(method, url, json=json, params=params, headers=headers)
        except httpx.TimeoutException as e:
            self._logger.warning("Booking backend timed out", extra={"error": str(e)})
            raise UpstreamTimeoutError(f"Booking backend did not answer in time ({method} {path})") from e
        except httpx.HTTPError as e:
            self._logger.error("Booking backend unreachable", extra={"error": str(e)})
            raise UpstreamError(f"Booking backend request failed: {e}") from e

        if response.status_code >= 400:
            self._raise_for_status(response, method, path)

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError(f"Booking backend returned invalid JSON for {method} {path}") from e

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise UpstreamError(f"Booking backend response for {method} {path} has no data object")
        return data

    def _raise_for_status(self, response: httpx.Response, method: str, path: str) -> None:
        message, details = _error_payload(response)
        status = response.status_code
        if status == 400:
            raise ValidationError(details or [message])
        if status == 404:
            raise NotFoundError(message)
        if status == 409:
            raise ConflictError(message)
        if status in (408, 504):
            raise UpstreamTimeoutError(f"Booking backend timed out ({method} {path})")

        self._logger.error(
            "Booking backend error",
            extra={"status": status, "error": message},
        )
        raise UpstreamError(f"Booking backend returned {status} for {method} {path}: {message}")


def _error_payload(response: httpx.Response) -> tuple[str, list[str]]:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase, []

    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return response.reason_phrase, []

    message = str(error.get("message") or response.reason_phrase)
    details: list[str] = []
    for item in error.get("details") or []:
        if isinstance(item, dict):
            details.append(str(item.get("msg") or item.get("message") or item))
        else:
            details.append(str(item))
    return message, details
