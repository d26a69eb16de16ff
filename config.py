"""
Configuration management for the journal reflection service
"""

import math
import os
from typing import List, Optional
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_OPENAI_TIMEOUT_SECONDS = 20.0


@dataclass
class Config:
    # Environment
    APP_ENV: str
    PORT: int
    LOG_LEVEL: str

    # External provider
    OPENAI_API_KEY: Optional[str]
    OPENAI_TIMEOUT_SECONDS: float

    # Network safety
    ALLOWED_ORIGINS: List[str]

    @property
    def external_provider_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)


_CONFIG_INSTANCE: Optional[Config] = None


def _parse_timeout(raw: Optional[str]) -> float:
    # The outbound call must never be unbounded.
    if not raw:
        return DEFAULT_OPENAI_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_OPENAI_TIMEOUT_SECONDS
    if not math.isfinite(value) or value <= 0:
        return DEFAULT_OPENAI_TIMEOUT_SECONDS
    return value


def _build_config() -> Config:
    """Create a new ``Config`` instance from environment variables."""

    api_key = os.getenv("OPENAI_API_KEY", "").strip() or None

    return Config(
        # Environment
        APP_ENV=os.getenv("APP_ENV", "prod"),
        PORT=int(os.getenv("PORT", 8000)),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),

        # External provider
        OPENAI_API_KEY=api_key,
        OPENAI_TIMEOUT_SECONDS=_parse_timeout(os.getenv("OPENAI_TIMEOUT_SECONDS")),

        # Network safety
        ALLOWED_ORIGINS=[origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()] or ["*"],
    )


def get_config() -> Config:
    """Return the shared configuration object."""

    global _CONFIG_INSTANCE
    if _CONFIG_INSTANCE is None:
        _CONFIG_INSTANCE = _build_config()
    return _CONFIG_INSTANCE


def reset_config() -> Config:
    """Reload configuration from the environment."""

    global _CONFIG_INSTANCE
    _CONFIG_INSTANCE = _build_config()
    return _CONFIG_INSTANCE
