from __future__ import annotations

import logging
import os
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _validate_http_url(name: str, v: str) -> str:
    parsed = urlparse(v)
    if parsed.scheme not in {"http", "https"}:
        raise ValueError(f"{name} must start with http:// or https://")
    if not parsed.netloc:
        raise ValueError(f"{name} must include a host")
    return v.rstrip("/")


class Settings(BaseModel):
    secret: str
    database_url: str

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_workers: int = 1
    api_cors_origins: list[str] = ["http://localhost:5173"]

    app_name: str = "ChatSphere API"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    # Missing transport or gateway credentials surface at use, not at startup
    stream_api_key: Optional[str] = None
    stream_api_secret: Optional[str] = None
    stream_base_url: str = "https://chat.stream-io-api.com"
    stream_token_ttl_seconds: int = 3600

    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None
    razorpay_base_url: str = "https://api.razorpay.com"
    payment_currency: str = "INR"

    @field_validator("secret")
    @classmethod
    def validate_secret(cls, v: str) -> str:
        if not v:
            raise ValueError("Session secret cannot be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("stream_token_ttl_seconds")
    @classmethod
    def validate_token_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Token TTL must be positive")
        return v

    @field_validator("stream_base_url")
    @classmethod
    def validate_stream_base_url(cls, v: str) -> str:
        return _validate_http_url("Stream base URL", v)

    @field_validator("razorpay_base_url")
    @classmethod
    def validate_razorpay_base_url(cls, v: str) -> str:
        return _validate_http_url("Razorpay base URL", v)

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)


def _env(name: str) -> Optional[str]:
    value = os.environ.get(f"CHATSPHERE_{name}")
    return value if value else None


def get_settings() -> Settings:
    values: dict = {
        "secret": _env("SECRET"),
        "database_url": _env("DATABASE_URL"),
        "api_host": _env("API_HOST"),
        "api_port": _env("API_PORT"),
        "api_debug": _env("API_DEBUG"),
        "api_workers": _env("API_WORKERS"),
        "app_name": _env("APP_NAME"),
        "app_version": _env("APP_VERSION"),
        "log_level": _env("LOG_LEVEL"),
        "stream_api_key": _env("STREAM_API_KEY"),
        "stream_api_secret": _env("STREAM_API_SECRET"),
        "stream_base_url": _env("STREAM_BASE_URL"),
        "stream_token_ttl_seconds": _env("STREAM_TOKEN_TTL_SECONDS"),
        "razorpay_key_id": _env("RAZORPAY_KEY_ID"),
        "razorpay_key_secret": _env("RAZORPAY_KEY_SECRET"),
        "razorpay_base_url": _env("RAZORPAY_BASE_URL"),
        "payment_currency": _env("PAYMENT_CURRENCY"),
    }
    api_cors_origins_str = _env("API_CORS_ORIGINS")
    if api_cors_origins_str is not None:
        values["api_cors_origins"] = [
            origin.strip() for origin in api_cors_origins_str.split(",") if origin.strip()
        ]
    api_debug_str = values["api_debug"]
    if api_debug_str is not None:
        values["api_debug"] = api_debug_str.lower() == "true"

    # Unset optional values fall back to model defaults
    required = {"secret", "database_url"}
    return Settings(
        **{k: v for k, v in values.items() if v is not None or k in required}
    )
