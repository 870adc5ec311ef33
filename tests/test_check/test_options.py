"""Tests for check option validation and header parsing."""

from __future__ import annotations

import pytest

from svccheck.check.exceptions import ConfigurationError
from svccheck.check.options import Header, build_options, parse_headers
from svccheck.core.config import CheckConfig, DiscoveryConfig, Settings


def _settings(url: str = "http://disco.example.com", **check: object) -> Settings:
    check.setdefault("service", "foo")
    return Settings(
        discovery=DiscoveryConfig(url=url),
        check=CheckConfig(**check),  # type: ignore[arg-type]
    )


class TestParseHeaders:
    def test_valid(self) -> None:
        hds = parse_headers(["foo: bar", "baz: spam"])
        assert hds == [Header(key="foo", value="bar"), Header(key="baz", value="spam")]

    def test_splits_on_first_colon(self) -> None:
        hds = parse_headers(["Authorization: Basic a:b"])
        assert hds == [Header(key="Authorization", value="Basic a:b")]

    def test_missing_colon(self) -> None:
        with pytest.raises(ConfigurationError, match="invalid header: invalid"):
            parse_headers(["invalid", "baz: spam"])

    def test_empty_key(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_headers([": value"])

    def test_empty_list(self) -> None:
        assert parse_headers([]) == []


class TestBuildOptions:
    def test_valid_settings(self) -> None:
        opts = build_options(_settings(
            endpoint="/status",
            warn_fewer=3,
            crit_fewer=2,
            headers=["Accept: application/json"],
            max_concurrency=4,
            deadline_secs=20.0,
        ))
        assert opts.service == "foo"
        assert opts.endpoint == "/status"
        assert opts.warn == 3
        assert opts.crit == 2
        assert opts.headers == [Header(key="Accept", value="application/json")]
        assert opts.max_concurrency == 4
        assert opts.deadline_secs == 20.0

    def test_discovery_required(self) -> None:
        with pytest.raises(ConfigurationError, match="discovery"):
            build_options(_settings(url=""))

    def test_service_required(self) -> None:
        with pytest.raises(ConfigurationError, match="service is required"):
            build_options(_settings(service=""))

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ConfigurationError, match="timeout"):
            build_options(_settings(timeout_secs=0))

    def test_negative_thresholds_clamped(self) -> None:
        opts = build_options(_settings(warn_fewer=-1, crit_fewer=-5))
        assert opts.warn == 0
        assert opts.crit == 0

    def test_warn_below_crit_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="warn"):
            build_options(_settings(warn_fewer=1, crit_fewer=3))

    def test_disabled_warn_allowed_with_crit(self) -> None:
        opts = build_options(_settings(warn_fewer=0, crit_fewer=3))
        assert opts.warn == 0
        assert opts.crit == 3

    def test_negative_max_concurrency_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="concurrency"):
            build_options(_settings(max_concurrency=-1))

    def test_non_positive_deadline_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="deadline"):
            build_options(_settings(deadline_secs=0))

    def test_bad_header_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="failed to parse headers"):
            build_options(_settings(headers=["nope"]))
