"""
Application configuration loaded from environment variables.

Falls back to LM Studio's local defaults when nothing is set.
"""

import os

from pydantic import BaseModel, Field, field_validator

# Default fallback configuration for LM Studio
DEFAULT_SERVER_URL = "http://localhost:1234"
DEFAULT_API_KEY = "lm-studio"
DEFAULT_MAX_TOKENS = 2000


class Settings(BaseModel):
    """
    Runtime settings for the chat backend.

    Attributes:
        server_url: Inference server used when a request names none.
        api_key: Bearer token sent upstream (LM Studio ignores its value).
        max_tokens: Upper bound on generated tokens per reply.
        connect_timeout: Seconds allowed to establish the upstream connection.
        log_level: Root logging level.
        host: Interface uvicorn binds to when run directly.
        port: Port uvicorn listens on when run directly.
    """

    server_url: str = Field(
        default_factory=lambda: os.getenv("LM_STUDIO_URL", DEFAULT_SERVER_URL)
    )
    api_key: str = Field(
        default_factory=lambda: os.getenv("LM_STUDIO_API_KEY", DEFAULT_API_KEY)
    )
    max_tokens: int = Field(
        default_factory=lambda: int(
            os.getenv("LM_STUDIO_MAX_TOKENS", str(DEFAULT_MAX_TOKENS))
        ),
        ge=1,
    )
    connect_timeout: float = Field(
        default_factory=lambda: float(os.getenv("LM_STUDIO_CONNECT_TIMEOUT", "10")),
        gt=0,
    )
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8000")))

    @field_validator("server_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return normalize_server_url(v)

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()


def normalize_server_url(url: str) -> str:
    """Trim whitespace and trailing slashes so paths can be appended."""
    return url.strip().rstrip("/")


def get_settings() -> Settings:
    """Create settings from the current environment."""
    return Settings()
