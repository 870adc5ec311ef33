"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class DiscoveryConfig(BaseModel):
    """Discovery server connection configuration."""

    url: str = ""
    timeout_secs: float = 10.0
    # Response header naming the discovery node that answered (diagnostics only).
    backend_header: str = "X-Discovery-Server"


class CheckConfig(BaseModel):
    """Quota and health-check configuration for the target service."""

    service: str = ""
    endpoint: str = "health"
    skip_healthcheck: bool = False
    timeout_secs: float = 5.0
    warn_fewer: int = 1
    crit_fewer: int = 1
    headers: list[str] = []
    max_concurrency: int = 0
    deadline_secs: float | None = None


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "console"


class Settings(BaseModel):
    """Root settings container."""

    discovery: DiscoveryConfig = DiscoveryConfig()
    check: CheckConfig = CheckConfig()
    logging: LoggingConfig = LoggingConfig()


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
