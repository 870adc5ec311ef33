"""Tests for svccheck/core/types.py — severity order, announcements, verdicts."""

from __future__ import annotations

import itertools

from svccheck.core.types import (
    AggregateVerdict,
    Announcement,
    DiscoveryState,
    Measurement,
    ProbeOutcome,
    Severity,
)


def _ann(ann_id: str = "ann1", service: str = "foo", **metadata: object) -> Announcement:
    return Announcement(
        announcement_id=ann_id,
        service_type=service,
        service_uri=f"http://{ann_id}.example.com",
        environment="test",
        metadata=metadata,
    )


# ── Severity ────────────────────────────────────────────────────


class TestSeverity:
    def test_total_order(self) -> None:
        assert Severity.OK < Severity.UNKNOWN < Severity.WARN < Severity.CRIT

    def test_worst(self) -> None:
        assert Severity.worst(Severity.OK, Severity.UNKNOWN) == Severity.UNKNOWN
        assert Severity.worst(Severity.WARN, Severity.UNKNOWN) == Severity.WARN
        assert Severity.worst(Severity.CRIT, Severity.WARN) == Severity.CRIT

    def test_labels(self) -> None:
        assert Severity.OK.label == "OK"
        assert Severity.WARN.label == "WARNING"
        assert Severity.CRIT.label == "CRITICAL"
        assert Severity.UNKNOWN.label == "UNKNOWN"

    def test_exit_codes(self) -> None:
        assert Severity.OK.exit_code == 0
        assert Severity.WARN.exit_code == 1
        assert Severity.CRIT.exit_code == 2
        assert Severity.UNKNOWN.exit_code == 3


# ── Announcement ────────────────────────────────────────────────


class TestAnnouncement:
    def test_parses_discovery_keys(self) -> None:
        ann = Announcement.model_validate({
            "announcementId": "ann1",
            "serviceType": "foo",
            "serviceUri": "http://foo.com",
            "environment": "test-rs",
            "metadata": {"server-token": "host-a"},
        })
        assert ann.announcement_id == "ann1"
        assert ann.service_type == "foo"
        assert ann.service_uri == "http://foo.com"
        assert ann.environment == "test-rs"
        assert ann.server_token() == "host-a"

    def test_missing_fields_default_empty(self) -> None:
        ann = Announcement.model_validate({"serviceType": "foo"})
        assert ann.announcement_id == ""
        assert ann.metadata == {}

    def test_null_metadata(self) -> None:
        ann = Announcement.model_validate({"serviceType": "foo", "metadata": None})
        assert ann.metadata == {}
        assert ann.server_token() is None

    def test_server_token_absent(self) -> None:
        assert _ann().server_token() is None

    def test_server_token_non_string_ignored(self) -> None:
        assert _ann(**{"server-token": 42}).server_token() is None

    def test_server_token_empty_string_ignored(self) -> None:
        assert _ann(**{"server-token": ""}).server_token() is None


class TestDiscoveryState:
    def test_matching_is_exact(self) -> None:
        state = DiscoveryState(announcements=[
            _ann("a", "foo"),
            _ann("b", "foobar"),
            _ann("c", "Foo"),
            _ann("d", "foo"),
        ])
        assert [a.announcement_id for a in state.matching("foo")] == ["a", "d"]

    def test_announcement_ids(self) -> None:
        state = DiscoveryState(announcements=[_ann("a"), _ann("b", "bar")])
        assert state.announcement_ids() == {"a", "b"}


# ── ProbeOutcome / AggregateVerdict ─────────────────────────────


class TestProbeOutcome:
    def test_downgraded_returns_warn_copy(self) -> None:
        original = ProbeOutcome(severity=Severity.CRIT, message="boom", announcement=_ann())
        downgraded = original.downgraded("(gone)")
        assert downgraded.severity == Severity.WARN
        assert downgraded.message == "boom\n(gone)"
        assert downgraded.announcement == original.announcement
        # original untouched
        assert original.severity == Severity.CRIT
        assert original.message == "boom"

    def test_measurement_render(self) -> None:
        assert Measurement(name="instances", value=2).render() == "instances=2"
        assert Measurement(name="latency", value=1.5, unit="ms").render() == "latency=1.5ms"


class TestAggregateVerdict:
    def test_empty_is_ok(self) -> None:
        verdict = AggregateVerdict.from_outcomes([])
        assert verdict.severity == Severity.OK
        assert verdict.messages == []

    def test_from_outcomes_is_order_independent(self) -> None:
        outcomes = [
            ProbeOutcome(severity=s, message=s.label)
            for s in (Severity.OK, Severity.UNKNOWN, Severity.WARN, Severity.CRIT, Severity.OK)
        ]
        for perm in itertools.permutations(outcomes):
            assert AggregateVerdict.from_outcomes(perm).severity == Severity.CRIT

    def test_collects_measurements_in_outcome_order(self) -> None:
        outcomes = [
            ProbeOutcome(
                severity=Severity.OK,
                message="a",
                measurements=[Measurement(name="instances", value=2)],
            ),
            ProbeOutcome(
                severity=Severity.WARN,
                message="b",
                measurements=[Measurement(name="other", value=1)],
            ),
        ]
        verdict = AggregateVerdict.from_outcomes(outcomes)
        assert [m.name for m in verdict.measurements] == ["instances", "other"]
        assert verdict.messages == ["a", "b"]
