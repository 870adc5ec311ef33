"""Result aggregator — thread-safe sink for check outcomes."""

from __future__ import annotations

import threading

from svccheck.core.types import AggregateVerdict, ProbeOutcome, Severity


class ResultAggregator:
    """Collects outcomes from concurrent producers and tracks the worst severity.

    Outcomes are kept in arrival order. When probes run concurrently that is
    their completion order, which differs from run to run; only the worst
    severity is deterministic.

    The lock is a ``threading.Lock`` so producers may be coroutines on the
    event loop or worker threads; the critical sections never await.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._worst = Severity.OK
        self._outcomes: list[ProbeOutcome] = []

    @property
    def worst(self) -> Severity:
        with self._lock:
            return self._worst

    @property
    def outcomes(self) -> list[ProbeOutcome]:
        """Snapshot of the outcomes received so far."""
        with self._lock:
            return list(self._outcomes)

    def add(self, outcome: ProbeOutcome) -> None:
        with self._lock:
            self._worst = Severity.worst(self._worst, outcome.severity)
            self._outcomes.append(outcome)

    def finalize(self) -> AggregateVerdict:
        """Return the verdict for everything collected so far."""
        with self._lock:
            outcomes = list(self._outcomes)
            worst = self._worst
        return AggregateVerdict(
            severity=worst,
            outcomes=outcomes,
            measurements=[m for o in outcomes for m in o.measurements],
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._outcomes)
