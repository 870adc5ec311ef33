"""Discovery client — reads the fleet's announcements from ``<base>/state``."""

from __future__ import annotations

import asyncio
from types import TracebackType

import httpx
import structlog
from pydantic import ValidationError

from svccheck import USER_AGENT
from svccheck.core.config import DiscoveryConfig, get_settings
from svccheck.core.types import Announcement, DiscoveryState
from svccheck.discovery.exceptions import DiscoveryFetchError, DiscoveryParseError

logger = structlog.stdlib.get_logger()

_STATE_PATH = "/state"


def _parse_announcements(body: object) -> list[Announcement]:
    """Parse the ``/state`` response body.

    Expected structure::

        [
            {
                "announcementId": "ann1",
                "serviceType": "foo",
                "serviceUri": "http://foo.example.com:8080",
                "environment": "prod",
                "metadata": {"server-token": "host-a"}
            },
            ...
        ]
    """
    if not isinstance(body, list):
        raise DiscoveryParseError(
            f"discovery state must be a JSON array, got {type(body).__name__}"
        )

    announcements: list[Announcement] = []
    for index, entry in enumerate(body):
        if not isinstance(entry, dict):
            raise DiscoveryParseError(f"announcement #{index} is not an object")
        try:
            announcements.append(Announcement.model_validate(entry))
        except ValidationError as exc:
            raise DiscoveryParseError(f"announcement #{index} is malformed: {exc}") from exc
    return announcements


class DiscoveryClient:
    """HTTP client for the discovery server.

    Usage::

        async with DiscoveryClient(config) as disco:
            state = await disco.fetch()
    """

    def __init__(self, config: DiscoveryConfig | None = None) -> None:
        self._config = config or get_settings().discovery
        self._http: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._config.url

    @property
    def connected(self) -> bool:
        """Whether the HTTP client is active."""
        return self._http is not None and not self._http.is_closed

    async def connect(self) -> None:
        """Create the httpx async client."""
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeout_secs),
            headers={"User-Agent": USER_AGENT},
        )

    async def close(self) -> None:
        """Close the httpx async client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def fetch(self) -> DiscoveryState:
        """Fetch every announcement currently registered."""
        if self._http is None:
            raise DiscoveryFetchError("discovery client not connected")

        try:
            url = httpx.URL(self._config.url).join(_STATE_PATH)
        except httpx.InvalidURL as exc:
            raise DiscoveryFetchError(f"invalid discovery URL {self._config.url!r}: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise DiscoveryFetchError(
                f"invalid discovery URL {self._config.url!r}: expected an absolute http(s) URL"
            )

        timeout = self._config.timeout_secs
        try:
            # Bounds the whole request, including a slowly streamed body.
            async with asyncio.timeout(timeout):
                response = await self._http.get(url, headers={"Accept": "application/json"})
            response.raise_for_status()
        except TimeoutError as exc:
            raise DiscoveryFetchError(
                f"discovery request to {url} timed out after {timeout:g}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise DiscoveryFetchError(
                f"discovery server returned {exc.response.status_code} for {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise DiscoveryFetchError(f"discovery request to {url} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise DiscoveryParseError("discovery server returned invalid JSON") from exc

        announcements = _parse_announcements(body)
        backend = response.headers.get(self._config.backend_header) or self._config.url

        logger.debug(
            "discovery_fetched",
            backend=backend,
            announcements=len(announcements),
        )
        return DiscoveryState(announcements=announcements, backend=backend)

    async def __aenter__(self) -> DiscoveryClient:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
