"""Reconciliation guard — re-verifies CRITICAL outcomes before they are reported.

Instances that deregister while a check is running (deploys, autoscaling)
often fail their probe on the way out. Before a CRITICAL verdict is final,
discovery is fetched again; a critical probe result whose announcement is
gone is downgraded to a warning.
"""

from __future__ import annotations

import structlog

from svccheck.core.types import AggregateVerdict, ProbeOutcome, Severity
from svccheck.discovery.base import AnnouncementSource
from svccheck.discovery.exceptions import DiscoveryError

logger = structlog.stdlib.get_logger()

_DOWNGRADE_NOTE = "(downgraded: announcement {announcement_id} is no longer registered)"
_SUMMARY_MSG = (
    "{count} critical result(s) downgraded: announcements vanished from discovery {backend}"
)
_FAILURE_MSG = "failed to reconcile critical results against discovery: {error}"


class ReconciliationGuard:
    """Downgrades stale CRITICAL outcomes using a fresh discovery fetch."""

    def __init__(self, source: AnnouncementSource) -> None:
        self._source = source

    @staticmethod
    def should_reconcile(verdict: AggregateVerdict, probing_enabled: bool) -> bool:
        return probing_enabled and verdict.severity == Severity.CRIT

    async def reconcile(self, verdict: AggregateVerdict) -> AggregateVerdict:
        """Return *verdict* with stale CRITICAL outcomes downgraded.

        If the fresh fetch fails, every CRITICAL outcome is kept and a
        WARN outcome describing the failure is appended.
        """
        outcomes = list(verdict.outcomes)

        try:
            state = await self._source.fetch()
        except DiscoveryError as exc:
            logger.warning("reconciliation_fetch_failed", error=str(exc))
            outcomes.append(ProbeOutcome(
                severity=Severity.WARN,
                message=_FAILURE_MSG.format(error=exc),
            ))
            return AggregateVerdict.from_outcomes(outcomes)

        live_ids = state.announcement_ids()

        # Worst first; stable, so equal severities keep arrival order.
        by_severity = sorted(
            range(len(outcomes)),
            key=lambda i: outcomes[i].severity,
            reverse=True,
        )

        downgraded = 0
        for index in by_severity:
            outcome = outcomes[index]
            if outcome.severity != Severity.CRIT:
                break
            ann = outcome.announcement
            if ann is None or ann.announcement_id in live_ids:
                continue
            outcomes[index] = outcome.downgraded(
                _DOWNGRADE_NOTE.format(announcement_id=ann.announcement_id)
            )
            downgraded += 1
            logger.info(
                "reconciliation_downgraded",
                announcement_id=ann.announcement_id,
                service_uri=ann.service_uri,
            )

        if downgraded == 0:
            logger.debug("reconciliation_confirmed", backend=state.backend)
            return verdict

        outcomes.append(ProbeOutcome(
            severity=Severity.WARN,
            message=_SUMMARY_MSG.format(count=downgraded, backend=state.backend),
        ))
        result = AggregateVerdict.from_outcomes(outcomes)
        logger.info(
            "reconciliation_completed",
            downgraded=downgraded,
            backend=state.backend,
            severity=result.severity.label,
        )
        return result
