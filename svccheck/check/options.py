"""Validated check inputs built from settings."""

from __future__ import annotations

from pydantic import BaseModel, Field

from svccheck.check.exceptions import ConfigurationError
from svccheck.core.config import Settings


class Header(BaseModel):
    """One operator-supplied HTTP header sent with every probe."""

    key: str
    value: str


class CheckOptions(BaseModel):
    """Everything a check run needs, already validated."""

    service: str
    endpoint: str = "health"
    skip_healthcheck: bool = False
    timeout_secs: float = 5.0
    warn: int = 1
    crit: int = 1
    headers: list[Header] = Field(default_factory=list)
    max_concurrency: int = 0
    deadline_secs: float | None = None


def parse_headers(raw: list[str]) -> list[Header]:
    """Parse ``"Key: value"`` strings, splitting on the first colon.

    Raises:
        ConfigurationError: If an entry has no colon or an empty key.
    """
    headers: list[Header] = []
    for entry in raw:
        if ":" not in entry:
            raise ConfigurationError(f"invalid header: {entry}")
        key, value = entry.split(":", 1)
        key = key.strip()
        if not key:
            raise ConfigurationError(f"invalid header: {entry}")
        headers.append(Header(key=key, value=value.strip()))
    return headers


def build_options(settings: Settings) -> CheckOptions:
    """Validate *settings* and turn them into :class:`CheckOptions`.

    Negative thresholds are clamped to 0 (disabled). When both thresholds
    are enabled, warn must not be below crit.

    Raises:
        ConfigurationError: On any invalid input.
    """
    if not settings.discovery.url:
        raise ConfigurationError("discovery URL is required")

    cfg = settings.check
    if not cfg.service:
        raise ConfigurationError("service is required")

    if cfg.timeout_secs <= 0:
        raise ConfigurationError("timeout must be greater than zero")

    crit = max(cfg.crit_fewer, 0)
    warn = max(cfg.warn_fewer, 0)
    if warn and crit and warn < crit:
        raise ConfigurationError("warn must be greater than or equal to crit")

    if cfg.max_concurrency < 0:
        raise ConfigurationError("max concurrency must not be negative")

    if cfg.deadline_secs is not None and cfg.deadline_secs <= 0:
        raise ConfigurationError("deadline must be greater than zero")

    try:
        headers = parse_headers(cfg.headers)
    except ConfigurationError as exc:
        raise ConfigurationError(f"failed to parse headers: {exc}") from exc

    return CheckOptions(
        service=cfg.service,
        endpoint=cfg.endpoint,
        skip_healthcheck=cfg.skip_healthcheck,
        timeout_secs=cfg.timeout_secs,
        warn=warn,
        crit=crit,
        headers=headers,
        max_concurrency=cfg.max_concurrency,
        deadline_secs=cfg.deadline_secs,
    )
