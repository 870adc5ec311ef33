"""Health prober — concurrently GETs each announcement's health endpoint."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

import httpx
import structlog

from svccheck import USER_AGENT
from svccheck.check.aggregator import ResultAggregator
from svccheck.check.options import CheckOptions
from svccheck.core.types import Announcement, ProbeOutcome, Severity

logger = structlog.stdlib.get_logger()

_RESPONSE_TEMPLATE = """---
status code: {status_code}
duration: {duration_ms} ms
endpoint: {url}"""


@dataclass(frozen=True)
class ProbeResponse:
    """The endpoint answered with an HTTP status."""

    url: str
    status_code: int
    duration_secs: float
    content_type: str = ""

    @property
    def duration_ms(self) -> int:
        return int(self.duration_secs * 1000)


@dataclass(frozen=True)
class TransportFailure:
    """No HTTP status was obtained (DNS, refused, TLS, timeout, bad URL)."""

    url: str
    error: str


FetchResult = ProbeResponse | TransportFailure

# No pool-wide cap on connections: a stuck instance holds its own
# connection only, and max_concurrency is enforced by HealthProber.
_PROBE_LIMITS = httpx.Limits(max_connections=None, max_keepalive_connections=20)


def build_probe_client(options: CheckOptions) -> httpx.AsyncClient:
    """Create the httpx client used for health probes."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(options.timeout_secs),
        limits=_PROBE_LIMITS,
    )


def status_for(status_code: int) -> Severity:
    """Map an HTTP status code to a severity: 2xx OK, 4xx WARN, else CRIT."""
    family = status_code // 100
    if family == 2:
        return Severity.OK
    if family == 4:
        return Severity.WARN
    return Severity.CRIT


def format_response(response: ProbeResponse) -> str:
    return _RESPONSE_TEMPLATE.format(
        status_code=response.status_code,
        duration_ms=response.duration_ms,
        url=response.url,
    )


def _describe(exc: Exception) -> str:
    # httpx timeouts often carry an empty message.
    return str(exc) or type(exc).__name__


def classify(announcement: Announcement, result: FetchResult) -> ProbeOutcome:
    """Turn a fetch result into the probe outcome for *announcement*."""
    if isinstance(result, TransportFailure):
        # Unreachable during one probe is not proof of an outage.
        return ProbeOutcome(
            severity=Severity.WARN,
            message=(
                f"failed to fetch announced endpoint {announcement.service_uri}: "
                f"{result.error}"
            ),
            announcement=announcement,
        )
    if isinstance(result, ProbeResponse):
        return ProbeOutcome(
            severity=status_for(result.status_code),
            message=format_response(result),
            announcement=announcement,
        )
    raise TypeError(f"unhandled fetch result {type(result).__name__}")


class HealthProber:
    """Probes announcements concurrently, one task per announcement.

    Usage::

        async with build_probe_client(options) as http:
            prober = HealthProber(http, options)
            await prober.probe_all(announcements, aggregator)

    Every announcement passed to :meth:`probe_all` produces exactly one
    outcome in the aggregator. ``options.max_concurrency`` bounds how many
    requests are in flight at once (0 = unbounded); it changes pacing only.
    The client should come from :func:`build_probe_client` so that the
    connection pool never queues probes behind stuck siblings.
    """

    def __init__(self, client: httpx.AsyncClient, options: CheckOptions) -> None:
        self._client = client
        self._options = options
        self._timeout = httpx.Timeout(options.timeout_secs)
        self._headers = httpx.Headers([
            ("User-Agent", USER_AGENT),
            *((h.key, h.value) for h in options.headers),
        ])
        self._semaphore: asyncio.Semaphore | None = None
        if options.max_concurrency > 0:
            self._semaphore = asyncio.Semaphore(options.max_concurrency)

    async def probe_all(
        self,
        announcements: list[Announcement],
        aggregator: ResultAggregator,
        deadline: float | None = None,
    ) -> None:
        """Probe every announcement and wait for all of them.

        Args:
            announcements: Instances of the target service.
            aggregator: Receives one outcome per announcement, in completion order.
            deadline: Optional event-loop time after which in-flight probes
                are aborted and reported as transport failures.
        """
        async with asyncio.TaskGroup() as tg:
            for ann in announcements:
                tg.create_task(self._probe_into(ann, aggregator, deadline))

        logger.debug("probes_completed", probes=len(announcements))

    async def _probe_into(
        self,
        announcement: Announcement,
        aggregator: ResultAggregator,
        deadline: float | None,
    ) -> None:
        try:
            outcome = await self.probe(announcement, deadline)
        except Exception as exc:
            logger.exception(
                "probe_error",
                announcement_id=announcement.announcement_id,
                service_uri=announcement.service_uri,
            )
            outcome = ProbeOutcome(
                severity=Severity.UNKNOWN,
                message=(
                    f"unexpected error probing {announcement.service_uri}: "
                    f"{_describe(exc)}"
                ),
                announcement=announcement,
            )
        aggregator.add(outcome)

    async def probe(
        self,
        announcement: Announcement,
        deadline: float | None = None,
    ) -> ProbeOutcome:
        """Probe a single announcement's health endpoint."""
        if self._semaphore is not None:
            async with self._semaphore:
                result = await self._fetch(announcement, deadline)
        else:
            result = await self._fetch(announcement, deadline)

        outcome = classify(announcement, result)
        logger.debug(
            "probe_completed",
            announcement_id=announcement.announcement_id,
            url=result.url,
            severity=outcome.severity.label,
            status_code=getattr(result, "status_code", None),
        )
        return outcome

    async def _fetch(
        self,
        announcement: Announcement,
        deadline: float | None,
    ) -> FetchResult:
        try:
            url = httpx.URL(announcement.service_uri).join(self._options.endpoint)
        except httpx.InvalidURL as exc:
            return TransportFailure(url=announcement.service_uri, error=_describe(exc))
        if url.scheme not in ("http", "https") or not url.host:
            return TransportFailure(
                url=str(url),
                error=f"unsupported URL {str(url)!r}: expected an absolute http(s) URL",
            )

        # The probe timeout covers the whole exchange, body included; the
        # run deadline can only shorten it.
        probe_deadline = asyncio.get_running_loop().time() + self._options.timeout_secs
        run_bound = deadline is not None and deadline <= probe_deadline
        start = time.perf_counter()
        try:
            async with asyncio.timeout_at(deadline if run_bound else probe_deadline):
                response = await self._client.get(
                    url,
                    headers=self._headers,
                    timeout=self._timeout,
                )
        except TimeoutError:
            if run_bound:
                return TransportFailure(url=str(url), error="check deadline reached")
            return TransportFailure(
                url=str(url),
                error=f"timed out after {self._options.timeout_secs:g}s",
            )
        except httpx.HTTPError as exc:
            return TransportFailure(url=str(url), error=_describe(exc))
        duration = time.perf_counter() - start

        return ProbeResponse(
            url=str(url),
            status_code=response.status_code,
            duration_secs=duration,
            content_type=response.headers.get("Content-Type", ""),
        )
