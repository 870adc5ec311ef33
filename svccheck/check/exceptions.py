"""Check engine exceptions."""

from __future__ import annotations


class CheckError(Exception):
    """Base exception for check engine errors."""


class ConfigurationError(CheckError):
    """Check inputs are invalid (thresholds, headers, timeouts)."""
