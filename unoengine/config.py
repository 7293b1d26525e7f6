"""
Configuration - Environment-driven settings.

Environment variables:
    UNO_ENV              development | test | ci | production
    UNO_STRICT_EFFECTS   true/false, raise on unknown effect fields
    UNO_PIPELINE_CACHE   false disables rule pipeline caching
    UNO_LOG_LEVEL        logging level name (default INFO)
    UNO_ALLOWED_ORIGINS  comma separated CORS origins for the API
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import os

UNO_ENV = os.getenv("UNO_ENV", "development")
UNO_LOG_LEVEL = os.getenv("UNO_LOG_LEVEL", "INFO")

STRICT_ENVIRONMENTS = {"test", "ci"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Runtime settings passed explicitly to the service and the API."""
    env: str = "development"
    strict_effects: bool = False
    pipeline_cache_enabled: bool = True
    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> Settings:
        env = os.getenv("UNO_ENV", "development")
        return cls(
            env=env,
            strict_effects=_env_flag("UNO_STRICT_EFFECTS", env in STRICT_ENVIRONMENTS),
            pipeline_cache_enabled=_env_flag("UNO_PIPELINE_CACHE", True),
            log_level=os.getenv("UNO_LOG_LEVEL", "INFO"),
            allowed_origins=os.getenv("UNO_ALLOWED_ORIGINS", "*").split(","),
        )


def configure_logging(level: str | None = None):
    """Configure root logging for CLI and API entry points."""
    logging.basicConfig(
        level=(level or UNO_LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
