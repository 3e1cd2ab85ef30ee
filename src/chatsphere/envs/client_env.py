from __future__ import annotations

import os
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator


class Settings(BaseModel):
    api_base_url: str
    session_token: str
    stream_api_key: str
    stream_base_url: str = "https://chat.stream-io-api.com"
    call_origin: str = "http://localhost:5173"
    confirmation_delay_seconds: float = 1.0

    @field_validator("api_base_url", "stream_base_url", "call_origin")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v:
            raise ValueError("URL cannot be empty")
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"}:
            raise ValueError("URL must start with http:// or https://")
        if not parsed.netloc:
            raise ValueError("URL must include a host")
        return v.rstrip("/")

    @field_validator("session_token", "stream_api_key")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Value cannot be empty")
        return v

    @field_validator("confirmation_delay_seconds")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Confirmation delay cannot be negative")
        return v


def get_settings() -> Settings:
    values: dict[str, Optional[str]] = {
        "api_base_url": os.environ.get("CHATSPHERE_API_BASE_URL"),
        "session_token": os.environ.get("CHATSPHERE_SESSION_TOKEN"),
        "stream_api_key": os.environ.get("STREAM_API_KEY"),
        "stream_base_url": os.environ.get("STREAM_BASE_URL"),
        "call_origin": os.environ.get("CALL_ORIGIN"),
        "confirmation_delay_seconds": os.environ.get("CONFIRMATION_DELAY_SECONDS"),
    }
    required = {"api_base_url", "session_token", "stream_api_key"}
    return Settings(
        **{k: v for k, v in values.items() if v is not None or k in required}
    )
