"""
Runtime settings read from the environment.

Values come from the process environment, which main.py populates from
.env via python-dotenv before anything reads them.
"""
import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using default {default}")
        return default


@dataclass(frozen=True)
class Settings:
    debug: bool
    fulfillment_delay_seconds: float
    fulfillment_timeout_seconds: float


def get_settings() -> Settings:
    """Read settings from the current environment."""
    return Settings(
        debug=os.getenv("DEBUG", "false").lower() == "true",
        fulfillment_delay_seconds=_float_env("FULFILLMENT_DELAY_MS", 500) / 1000,
        fulfillment_timeout_seconds=_float_env("FULFILLMENT_TIMEOUT_SECONDS", 10),
    )
