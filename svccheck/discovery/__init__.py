"""Discovery server access — the announcement source for checks."""

from svccheck.discovery.base import AnnouncementSource
from svccheck.discovery.client import DiscoveryClient
from svccheck.discovery.exceptions import DiscoveryError, DiscoveryFetchError, DiscoveryParseError

__all__ = [
    "AnnouncementSource",
    "DiscoveryClient",
    "DiscoveryError",
    "DiscoveryFetchError",
    "DiscoveryParseError",
]
