"""
MODULE OVERVIEW:
Application-wide configuration using Pydantic Settings.

WHAT IS HAPPENING HERE:
Every timing and sizing knob of the relay lives here instead of deep inside a route.
The webhook source only needs a port, but the heartbeat period and the size of the
"recent events" window are declared here too so a load test can shrink them from
the environment (or a `.env` file) without touching code.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Tolerate unrelated env vars so the relay runs out of the box
        extra="ignore",
    )

    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # Heartbeat re-broadcast of the recent slice
    HEARTBEAT_INTERVAL_S: float = 30.0

    # Webhook answers slower than this are logged as warnings
    WEBHOOK_SLOW_MS: float = 3000.0

    # How many of the newest events subscribers get to see
    RECENT_EVENTS_LIMIT: int = 5

    # GET /events dumps the whole buffer
    ENABLE_EVENTS_ENDPOINT: bool = True

    # Used by the CLI client commands
    SERVER_URL: str = "http://127.0.0.1:3000"


settings = Settings()
