"""
Purpose: Deployment settings read from the environment.

Values come from the process environment, optionally seeded from a local .env
file (python-dotenv). Example .env:

STORE_BASE_URL=https://campus-backend.example.edu/api
NOTIFY_BASE_URL=https://campus-backend.example.edu/api
HTTP_TIMEOUT_SECONDS=5
FORECAST_INTERVAL_SECONDS=300
LOG_LEVEL=INFO

Tunable business thresholds do NOT live here; see drivers/policy.py and
forecasting/policy.py.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    store_base_url: Optional[str] = None
    notify_base_url: Optional[str] = None
    http_timeout_seconds: float = 5.0
    forecast_interval_seconds: int = 300
    log_level: str = "INFO"

    def validate(self) -> None:
        if self.http_timeout_seconds <= 0:
            raise ValueError("HTTP_TIMEOUT_SECONDS must be > 0")
        if self.forecast_interval_seconds <= 0:
            raise ValueError("FORECAST_INTERVAL_SECONDS must be > 0")


def load_settings() -> Settings:
    """
    Build Settings from the current environment (after .env has been loaded).
    """
    settings = Settings(
        store_base_url=os.getenv("STORE_BASE_URL") or None,
        notify_base_url=os.getenv("NOTIFY_BASE_URL") or None,
        http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "5")),
        forecast_interval_seconds=int(os.getenv("FORECAST_INTERVAL_SECONDS", "300")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
    settings.validate()
    return settings


def configure_logging(level: Optional[str] = None) -> None:
    """Basic logging setup for scripts. Library modules only ever call getLogger."""
    level = level or load_settings().log_level
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
