import logging

from fastapi import FastAPI

from booking_assistant.api.errors import register_error_handlers
from booking_assistant.api.v1.bookings import router as bookings_router
from booking_assistant.api.v1.chat import router as chat_router
from booking_assistant.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("session_id", "step", "booking_id", "status", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title=f"{settings.BUSINESS_NAME} Booking Assistant", version="1.0.0")

register_error_handlers(app)
app.include_router(chat_router, tags=["chat"])
app.include_router(bookings_router, tags=["booking"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
