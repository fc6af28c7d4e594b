"""
Busylight — Centralized configuration.

Loads all settings from .env / the environment and validates them.
Command-line flags (see busylight.app) override the polling interval only.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

# Load .env from project root (two levels up from busylight/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Polling intervals (seconds)
    POLL_INTERVAL: int = 60
    TICK_INTERVAL: int = 60
    CAMERA_POLL_INTERVAL: float = 1.0

    # Camera detection — kernel module refcount
    CAMERA_MODULE: str = "uvcvideo"
    MODULES_PATH: str = "/proc/modules"

    # Calendar fetch
    GCALCLI_COMMAND: str = "gcalcli"
    DAYS_AHEAD: int = 1
    GCALCLI_TIMEOUT: float = 30.0

    # Light sink — {r}, {g}, {b} are substituted per command
    LIGHT_COMMAND: str = "blink1-tool --rgb={r},{g},{b}"
    LIGHT_REPEAT_LIMIT: int = 2
    LIGHT_TIMEOUT: float = 5.0

    # Indicator tuning
    MEETING_FUZZ_SECONDS: int = 120
    LONG_MEETING_HOURS: float = 4

    LOG_LEVEL: str = "INFO"

    @field_validator("POLL_INTERVAL", "TICK_INTERVAL", "LIGHT_REPEAT_LIMIT", mode="before")
    @classmethod
    def parse_positive_int(cls, v: str | int) -> int:
        value = int(v)
        if value < 1:
            raise ValueError(f"must be >= 1, got {value}")
        return value

    @field_validator(
        "CAMERA_POLL_INTERVAL", "GCALCLI_TIMEOUT", "LIGHT_TIMEOUT", mode="before"
    )
    @classmethod
    def parse_positive_float(cls, v: str | float) -> float:
        value = float(v)
        if value <= 0:
            raise ValueError(f"must be > 0, got {value}")
        return value

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def parse_log_level(cls, v: str) -> str:
        return str(v).strip().upper() or "INFO"


def _load_settings() -> Settings:
    """Load settings from environment, exiting on invalid values."""
    try:
        return Settings(
            POLL_INTERVAL=os.getenv("POLL_INTERVAL", "60"),
            TICK_INTERVAL=os.getenv("TICK_INTERVAL", "60"),
            CAMERA_POLL_INTERVAL=os.getenv("CAMERA_POLL_INTERVAL", "1.0"),
            CAMERA_MODULE=os.getenv("CAMERA_MODULE", "uvcvideo"),
            MODULES_PATH=os.getenv("MODULES_PATH", "/proc/modules"),
            GCALCLI_COMMAND=os.getenv("GCALCLI_COMMAND", "gcalcli"),
            DAYS_AHEAD=os.getenv("DAYS_AHEAD", "1"),
            GCALCLI_TIMEOUT=os.getenv("GCALCLI_TIMEOUT", "30"),
            LIGHT_COMMAND=os.getenv("LIGHT_COMMAND", "blink1-tool --rgb={r},{g},{b}"),
            LIGHT_REPEAT_LIMIT=os.getenv("LIGHT_REPEAT_LIMIT", "2"),
            LIGHT_TIMEOUT=os.getenv("LIGHT_TIMEOUT", "5"),
            MEETING_FUZZ_SECONDS=os.getenv("MEETING_FUZZ_SECONDS", "120"),
            LONG_MEETING_HOURS=os.getenv("LONG_MEETING_HOURS", "4"),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        )
    except ValidationError as exc:
        print(f"ERROR: invalid configuration in environment/.env:\n{exc}", file=sys.stderr)
        sys.exit(1)


# Singleton — imported by all other modules as:
#   from busylight.config import settings
settings = _load_settings()
