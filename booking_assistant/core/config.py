from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BUSINESS_NAME: str = "Metalogics"
    BUSINESS_TIMEZONE: str = "Europe/London"
    BUSINESS_OPEN_HOUR: int = 9
    BUSINESS_CLOSE_HOUR: int = 18
    BUSINESS_DAYS: list[int] = [0, 1, 2, 3, 4]  # Monday=0
    CONTACT_EMAIL: str = "hello@metalogics.io"

    ALLOWED_DURATIONS: list[int] = [15, 30, 45, 60]
    DEFAULT_DURATION_MINUTES: int = 30
    DEFAULT_MEETING_HOUR: int = 14
    SLOT_INTERVAL_MINUTES: int = 30

    SESSION_TTL_SECONDS: int = 86400  # 0 disables expiry
    SESSION_LOCK_TIMEOUT_SECONDS: float = 10.0
    STORE_PROVIDER: str = "memory"  # "memory" | "json"
    STORE_DATA_DIR: str = "./data/sessions"

    BACKEND_BASE_URL: str | None = None
    BACKEND_API_KEY: str | None = None
    UPSTREAM_TIMEOUT_SECONDS: float = 10.0

    WIDGET_API_KEYS: list[str] = []

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_TRUSTED_IPS: list[str] = []
    RATE_LIMIT_CHAT: int = 30
    RATE_LIMIT_CHAT_WINDOW_SECONDS: int = 300
    RATE_LIMIT_BOOKING: int = 5
    RATE_LIMIT_BOOKING_WINDOW_SECONDS: int = 3600
    RATE_LIMIT_AVAILABILITY: int = 20
    RATE_LIMIT_AVAILABILITY_WINDOW_SECONDS: int = 60
    RATE_LIMIT_GENERAL: int = 100
    RATE_LIMIT_GENERAL_WINDOW_SECONDS: int = 900

    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL_CHAT: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE_CHAT: float = 0.3


settings = Settings()
