#!/usr/bin/env python3
"""
Interactive local chat harness (no HTTP, no widget).

Usage:
  python3 scripts/chat_local.py

What it does:
- Keeps a stable session id for the conversation
- Sends your typed messages through the same HandleChatMessageUseCase the API uses
- Prints the reply type, the booking step and the collected fields after every turn
"""

from __future__ import annotations

import os
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from booking_assistant.application.exceptions import BookingAssistantError  # noqa: E402
from booking_assistant.application.ports.booking_repository import BookingLedgerPort  # noqa: E402
from booking_assistant.wiring.dependencies import get_booking_repository, get_handle_chat_use_case  # noqa: E402


def _print_header(session_id: str) -> None:
    print("\nLocal Booking Chat")
    print("-" * 60)
    print(f"session_id: {session_id}")
    print("Type your message and press Enter.")
    print("Commands: /new (new session), /clear, /state, /bookings, /quit, /help")
    print("-" * 60)


def main() -> None:
    session_id = os.getenv("CHAT_SESSION_ID", "local_user_1")
    use_case = get_handle_chat_use_case()
    repository = get_booking_repository()
    _print_header(session_id)

    while True:
        try:
            user_text = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not user_text:
            continue

        cmd = user_text.lower()
        if cmd in ("/quit", "/exit"):
            print("Bye!")
            return
        if cmd == "/help":
            print("Commands:")
            print("  /new      -> start a new session id")
            print("  /clear    -> restart the current session")
            print("  /state    -> show the stored session")
            print("  /bookings -> list bookings held in this process")
            print("  /quit     -> exit")
            continue
        if cmd == "/new":
            session_id = f"local_user_{int(time.time())}"
            print(f"New session_id: {session_id}")
            continue
        if cmd == "/clear":
            use_case.clear(session_id)
            print("Session restarted.")
            continue
        if cmd == "/state":
            session = use_case.get_session(session_id)
            print(f"step: {session.step.value}")
            for key, value in session.fields.to_dict().items():
                print(f"  {key}: {value}")
            if session.booking_id:
                print(f"booking_id: {session.booking_id}")
            continue
        if cmd == "/bookings":
            if not isinstance(repository, BookingLedgerPort):
                print("(not available: bookings are held by the remote backend)")
                continue
            listed = repository.list_bookings()
            for booking in listed:
                print(f"  {booking.id} {booking.date_time.isoformat()} {booking.duration}min {booking.status.value}")
            if not listed:
                print("(no bookings)")
            continue

        try:
            reply = use_case.handle(session_id, user_text)
        except BookingAssistantError as e:
            print(f"ERROR [{e.code}] {e} (retryable={e.retryable})")
            continue

        print("\n--- Decision ---")
        print(f"type: {reply.type}")
        if reply.step:
            print(f"step: {reply.step}")
        if reply.booking_id:
            print(f"booking_id: {reply.booking_id}")

        print("\n--- Reply ---")
        print(reply.message.strip() or "(empty reply)")
        print("-" * 60)


if __name__ == "__main__":
    main()
