#!/usr/bin/env python3
"""Diagnostic checks for a running booking assistant deployment."""

import os
import sys
import time
from datetime import date, timedelta
from typing import Any

import httpx


BASE_URL = os.getenv("PROBE_BASE_URL", "http://127.0.0.1:8000")
API_KEY = os.getenv("PROBE_API_KEY")


def _headers() -> dict[str, str]:
    return {"x-api-key": API_KEY} if API_KEY else {}


def _next_weekday(start: date) -> date:
    day = start + timedelta(days=1)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


def _call(method: str, path: str, **kwargs: Any) -> httpx.Response | None:
    try:
        response = httpx.request(method, f"{BASE_URL}{path}", headers=_headers(), timeout=30.0, **kwargs)
    except httpx.HTTPError as e:
        print(f"❌ {method} {path}: {e}")
        return None
    marker = "✅" if response.status_code < 400 else "❌"
    print(f"{marker} {method} {path} -> {response.status_code}")
    return response


def check_health() -> bool:
    print("=" * 60)
    print("Testing GET /health")
    print("=" * 60)
    response = _call("GET", "/health")
    return response is not None and response.status_code == 200


def check_chat_flow() -> str | None:
    print("\n" + "=" * 60)
    print("Testing POST /api/chat booking conversation")
    print("=" * 60)

    session_id = f"check_{int(time.time())}"
    day = _next_weekday(date.today())
    turns = [
        "I'd like to book a meeting",
        "Probe User",
        "smoke-test@example.com",
        "Probe Ltd",
        "Checking the booking flow end to end",
        f"{day.isoformat()} 11:00",
        "30 minutes",
        "yes",
    ]

    booking_id = None
    for text in turns:
        response = _call("POST", "/api/chat", json={"sessionId": session_id, "message": text})
        if response is None or response.status_code >= 400:
            if response is not None:
                print(f"Response: {response.text}")
            return None
        reply = response.json()["response"]
        print(f"   > {text}")
        print(f"   < [{reply.get('step')}] {reply['message'][:120]}")
        booking_id = reply.get("bookingId") or booking_id

    return booking_id


def check_booking_crud() -> None:
    print("\n" + "=" * 60)
    print("Testing /api/booking create, read, status, availability")
    print("=" * 60)

    day = _next_weekday(date.today() + timedelta(days=1))
    response = _call("GET", "/api/booking/availability", params={"date": day.isoformat(), "duration": 30})
    if response is None or response.status_code >= 400:
        return
    slots = response.json()["data"]["availableSlots"]
    print(f"   {len(slots)} free slots on {day.isoformat()}")
    if not slots:
        return

    payload = {
        "name": "Probe User",
        "email": "smoke-test@example.com",
        "company": "Probe Ltd",
        "inquiry": "Direct booking check",
        "dateTime": slots[-1]["startTime"],
        "duration": 30,
    }
    response = _call("POST", "/api/booking", json=payload)
    if response is None or response.status_code != 201:
        if response is not None:
            print(f"Response: {response.text}")
        return
    booking_id = response.json()["data"]["booking"]["id"]

    _call("GET", f"/api/booking/{booking_id}")
    _call("PUT", f"/api/booking/{booking_id}/status", json={"status": "cancelled"})

    response = _call("PUT", f"/api/booking/{booking_id}/status", json={"status": "confirmed"})
    if response is not None and response.status_code == 409:
        print("   cancelled booking stays cancelled")

    response = _call("POST", "/api/booking", json=payload)
    if response is not None and response.status_code == 201:
        print("   slot freed after cancellation")


def main() -> int:
    if not check_health():
        print("Service is not healthy, aborting.")
        return 1
    booking_id = check_chat_flow()
    print(f"\nChat booking id: {booking_id or '(none)'}")
    check_booking_crud()
    return 0


if __name__ == "__main__":
    sys.exit(main())
