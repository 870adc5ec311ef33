"""Core module — config, types, logging."""

from svccheck.core.config import Settings, get_settings, load_settings, reset_settings
from svccheck.core.logging import check_context, setup_logging
from svccheck.core.types import (
    AggregateVerdict,
    Announcement,
    CheckPhase,
    DiscoveryState,
    Measurement,
    ProbeOutcome,
    Severity,
)

__all__ = [
    "AggregateVerdict",
    "Announcement",
    "CheckPhase",
    "DiscoveryState",
    "Measurement",
    "ProbeOutcome",
    "Settings",
    "Severity",
    "check_context",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
