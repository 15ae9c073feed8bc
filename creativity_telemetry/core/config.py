"""
Telemetry configuration settings
"""
import os
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Telemetry settings with environment variable support"""

    # App
    APP_NAME: str = "Creativity Lab Telemetry"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")  # development, staging, production

    # Research instrument endpoint (chat + completion logging share one route)
    INSTRUMENT_BASE_URL: str = os.getenv("INSTRUMENT_BASE_URL", "http://localhost:3000")
    CHAT_ROUTE: str = "/api/chat"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Event log retention
    POINTER_LOG_LIMIT: int = 1000
    KEYSTROKE_LOG_LIMIT: int = 50000
    INTERACTION_LOG_LIMIT: int = 10000
    COPY_PASTE_LOG_LIMIT: int = 5000
    ATTENTION_LOG_LIMIT: int = 10000
    TEXT_PREVIEW_LENGTH: int = 50
    SOURCE_MARKER_MAX_DEPTH: int = 32

    # Typing / cognitive thresholds (milliseconds)
    PAUSE_THRESHOLD_MS: float = 500.0
    THINKING_PAUSE_MS: float = 2000.0
    TYPING_WINDOW_MS: float = 10000.0
    TEMPORAL_WINDOW_MS: float = 1000.0

    # AI-usage attribution policy
    ATTRIBUTION_NGRAM_SIZES: List[int] = [3, 5]
    ATTRIBUTION_MIN_PHRASE_LENGTH: int = 10

    # Help-seeking classification policy
    LAST_RESORT_ATTEMPTS: int = 2

    # Monitoring
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )


settings = Settings()
