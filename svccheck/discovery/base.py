"""Announcement source protocol — the read-only view of the discovery server."""

from __future__ import annotations

from typing import Protocol

from svccheck.core.types import DiscoveryState


class AnnouncementSource(Protocol):
    """Anything that can return the current announcements of the whole fleet.

    Implementations raise :class:`~svccheck.discovery.exceptions.DiscoveryError`
    when the state cannot be fetched.
    """

    async def fetch(self) -> DiscoveryState: ...
