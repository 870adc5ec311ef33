"""Exception hierarchy for the discovery client."""

from __future__ import annotations


class DiscoveryError(Exception):
    """Base exception for all discovery errors."""


class DiscoveryFetchError(DiscoveryError):
    """Failed to fetch state from the discovery server (HTTP)."""


class DiscoveryParseError(DiscoveryError):
    """Discovery server returned a body that is not a list of announcements."""
