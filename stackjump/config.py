"""Environment-driven settings.

Usage:
    from stackjump.config import get_settings

    settings = get_settings()
    if settings.use_move_cache:
        ...

Settings are read once per process; call ``get_settings.cache_clear()`` in
tests after changing the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in _TRUTHY


def _env_int(name: str, default: str, minimum: int = 0) -> int:
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer", context={"value": raw}
        ) from None
    if value < minimum:
        raise ConfigurationError(
            f"{name} must be >= {minimum}", context={"value": value}
        )
    return value


@dataclass(frozen=True)
class Settings:
    """Process-wide engine and service settings."""

    default_ruleset: str = "lasca"
    use_move_cache: bool = True
    move_cache_size: int = 1000
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("*",)
    port: int = 8001

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls(
            default_ruleset=os.getenv("STACKJUMP_DEFAULT_RULESET", "lasca").lower(),
            use_move_cache=_env_flag("STACKJUMP_USE_MOVE_CACHE", "true"),
            move_cache_size=_env_int("STACKJUMP_MOVE_CACHE_SIZE", "1000", minimum=1),
            log_level=os.getenv("STACKJUMP_LOG_LEVEL", "INFO").upper(),
            cors_origins=tuple(
                origin.strip()
                for origin in os.getenv("CORS_ORIGINS", "*").split(",")
                if origin.strip()
            ),
            port=_env_int("STACKJUMP_PORT", "8001", minimum=1),
        )
        logger.debug("Loaded settings: %s", settings)
        return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
