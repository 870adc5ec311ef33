"""Domain types — severities, announcements, probe outcomes and verdicts."""

from __future__ import annotations

from collections.abc import Iterable
from enum import IntEnum, StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Metadata key holding the identity of the physical host behind an announcement.
SERVER_TOKEN_KEY = "server-token"


class Severity(IntEnum):
    """Check severity — ordered so ``max()`` yields the worst.

    UNKNOWN ranks between OK and WARN: an unknown result is worse than a
    healthy one but never masks a confirmed warning or outage.
    """

    OK = 0
    UNKNOWN = 1
    WARN = 2
    CRIT = 3

    @property
    def label(self) -> str:
        """Plugin-output label (``OK``, ``WARNING``, ``CRITICAL``, ``UNKNOWN``)."""
        return _LABELS[self]

    @property
    def exit_code(self) -> int:
        """Conventional monitoring-plugin exit code."""
        return _EXIT_CODES[self]

    @staticmethod
    def worst(a: Severity, b: Severity) -> Severity:
        return a if a >= b else b


_LABELS: dict[Severity, str] = {
    Severity.OK: "OK",
    Severity.UNKNOWN: "UNKNOWN",
    Severity.WARN: "WARNING",
    Severity.CRIT: "CRITICAL",
}

_EXIT_CODES: dict[Severity, int] = {
    Severity.OK: 0,
    Severity.WARN: 1,
    Severity.CRIT: 2,
    Severity.UNKNOWN: 3,
}


class CheckPhase(StrEnum):
    """Lifecycle of a single check run."""

    COLLECTING = "COLLECTING"
    QUOTA_EVALUATED = "QUOTA_EVALUATED"
    PROBING = "PROBING"
    AGGREGATED = "AGGREGATED"
    RECONCILING = "RECONCILING"
    FINAL = "FINAL"
    DONE = "DONE"


# ── Discovery Types ─────────────────────────────────────────────


class Announcement(BaseModel):
    """One service instance registration as reported by discovery."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    announcement_id: str = Field(default="", alias="announcementId")
    service_type: str = Field(default="", alias="serviceType")
    service_uri: str = Field(default="", alias="serviceUri")
    environment: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata", mode="before")
    @classmethod
    def _null_metadata(cls, value: Any) -> Any:
        return {} if value is None else value

    def server_token(self) -> str | None:
        """Return the dedup token, or None when absent or not a non-empty string."""
        token = self.metadata.get(SERVER_TOKEN_KEY)
        if isinstance(token, str) and token:
            return token
        return None


class DiscoveryState(BaseModel):
    """Snapshot of every announcement known to the discovery server."""

    announcements: list[Announcement] = Field(default_factory=list)
    backend: str = ""

    def matching(self, service_type: str) -> list[Announcement]:
        """Announcements whose service type is exactly *service_type*."""
        return [a for a in self.announcements if a.service_type == service_type]

    def announcement_ids(self) -> set[str]:
        return {a.announcement_id for a in self.announcements}


# ── Check Result Types ──────────────────────────────────────────


class Measurement(BaseModel):
    """A single performance-data point (name/value/unit)."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: float
    unit: str = ""

    def render(self) -> str:
        return f"{self.name}={self.value:g}{self.unit}"


class ProbeOutcome(BaseModel):
    """Result of the quota evaluation or of one health probe."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    message: str
    measurements: list[Measurement] = Field(default_factory=list)
    announcement: Announcement | None = None

    def downgraded(self, annotation: str) -> ProbeOutcome:
        """Return a WARN copy of this outcome with *annotation* appended."""
        return self.model_copy(update={
            "severity": Severity.WARN,
            "message": f"{self.message}\n{annotation}",
        })


class AggregateVerdict(BaseModel):
    """Final severity of a run plus every outcome that produced it."""

    severity: Severity = Severity.OK
    outcomes: list[ProbeOutcome] = Field(default_factory=list)
    measurements: list[Measurement] = Field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[ProbeOutcome]) -> AggregateVerdict:
        """Build a verdict whose severity is the worst over *outcomes*."""
        items = list(outcomes)
        severity = max((o.severity for o in items), default=Severity.OK)
        measurements = [m for o in items for m in o.measurements]
        return cls(severity=severity, outcomes=items, measurements=measurements)

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outcomes]
