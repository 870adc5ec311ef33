"""Check runner — drives one quota + health check run end to end."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack

import httpx
import structlog

from svccheck.check.aggregator import ResultAggregator
from svccheck.check.exceptions import ConfigurationError
from svccheck.check.options import CheckOptions, build_options
from svccheck.check.prober import HealthProber, build_probe_client
from svccheck.check.quota import evaluate_quota
from svccheck.check.reconcile import ReconciliationGuard
from svccheck.core.config import Settings
from svccheck.core.logging import check_context
from svccheck.core.types import AggregateVerdict, CheckPhase, ProbeOutcome, Severity
from svccheck.discovery.base import AnnouncementSource
from svccheck.discovery.client import DiscoveryClient
from svccheck.discovery.exceptions import DiscoveryError

logger = structlog.stdlib.get_logger()


class ServiceCheck:
    """One stateless check run against a discovery snapshot.

    Phases: COLLECTING → QUOTA_EVALUATED → [PROBING → AGGREGATED]
    → [RECONCILING → FINAL] → DONE. Probing is skipped when
    ``options.skip_healthcheck`` is set; reconciliation only runs after
    probing produced a CRITICAL verdict. Discovery is queried at most twice.

    Raises :class:`DiscoveryError` if the initial fetch fails.
    """

    def __init__(
        self,
        source: AnnouncementSource,
        prober: HealthProber,
        options: CheckOptions,
    ) -> None:
        self._source = source
        self._prober = prober
        self._options = options
        self._guard = ReconciliationGuard(source)
        self._phase = CheckPhase.COLLECTING

    @property
    def phase(self) -> CheckPhase:
        return self._phase

    def _enter(self, phase: CheckPhase) -> None:
        self._phase = phase
        logger.debug("check_phase", phase=phase.value)

    async def run(self, deadline_secs: float | None = None) -> AggregateVerdict:
        """Execute the run and return its verdict.

        Args:
            deadline_secs: Budget for the probing phase; in-flight probes are
                aborted when it runs out. Defaults to ``options.deadline_secs``.
        """
        opts = self._options
        self._enter(CheckPhase.COLLECTING)
        state = await self._source.fetch()
        matching = state.matching(opts.service)

        aggregator = ResultAggregator()
        aggregator.add(evaluate_quota(matching, opts.service, opts.warn, opts.crit))
        self._enter(CheckPhase.QUOTA_EVALUATED)

        probing = not opts.skip_healthcheck
        if probing:
            self._enter(CheckPhase.PROBING)
            budget = deadline_secs if deadline_secs is not None else opts.deadline_secs
            deadline = None
            if budget is not None:
                deadline = asyncio.get_running_loop().time() + budget
            await self._prober.probe_all(matching, aggregator, deadline)
            self._enter(CheckPhase.AGGREGATED)

        verdict = aggregator.finalize()

        if self._guard.should_reconcile(verdict, probing):
            self._enter(CheckPhase.RECONCILING)
            verdict = await self._guard.reconcile(verdict)
            self._enter(CheckPhase.FINAL)

        self._enter(CheckPhase.DONE)
        logger.info(
            "check_completed",
            service=opts.service,
            severity=verdict.severity.label,
            outcomes=len(verdict.outcomes),
        )
        return verdict


def unknown_verdict(message: str) -> AggregateVerdict:
    """Verdict for a run that could not produce real results."""
    return AggregateVerdict.from_outcomes([
        ProbeOutcome(severity=Severity.UNKNOWN, message=message),
    ])


async def run_check(
    settings: Settings,
    source: AnnouncementSource | None = None,
    http: httpx.AsyncClient | None = None,
) -> AggregateVerdict:
    """Validate *settings*, run the check and always return a verdict.

    Configuration errors, a failed initial discovery fetch and any unexpected
    exception become an UNKNOWN verdict. Only cancellation propagates.

    Args:
        settings: Loaded settings (YAML merged with CLI overrides).
        source: Announcement source; a :class:`DiscoveryClient` is created if None.
        http: Client used for health probes; one is created if None.
    """
    try:
        options = build_options(settings)
    except ConfigurationError as exc:
        logger.warning("check_misconfigured", error=str(exc))
        return unknown_verdict(str(exc))

    with check_context(options.service):
        return await _run_with_clients(settings, options, source, http)


async def _run_with_clients(
    settings: Settings,
    options: CheckOptions,
    source: AnnouncementSource | None,
    http: httpx.AsyncClient | None,
) -> AggregateVerdict:
    try:
        async with AsyncExitStack() as stack:
            if source is None:
                source = await stack.enter_async_context(DiscoveryClient(settings.discovery))
            if http is None:
                http = await stack.enter_async_context(build_probe_client(options))
            check = ServiceCheck(source, HealthProber(http, options), options)
            return await check.run()
    except DiscoveryError as exc:
        logger.warning("discovery_fetch_failed", error=str(exc))
        return unknown_verdict(f"failed to fetch discovery state: {exc}")
    except Exception as exc:
        logger.exception("check_failed")
        return unknown_verdict(f"unexpected error: {exc}")
