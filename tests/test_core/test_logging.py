"""Tests for svccheck/core/logging.py — handler setup and per-run context."""

from __future__ import annotations

import io
import json
import logging
from collections.abc import Iterator
from typing import Any

import pytest
import structlog

from svccheck.core.config import reset_settings
from svccheck.core.logging import check_context, setup_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """Reset settings and put the root logger back after each test."""
    reset_settings()
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _records(stream: io.StringIO) -> list[dict[str, Any]]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestSetupLogging:
    def test_json_records_on_given_stream(self) -> None:
        stream = io.StringIO()
        setup_logging(level="INFO", fmt="json", stream=stream)

        structlog.stdlib.get_logger("svccheck.test").info("probe_completed", status_code=200)

        [record] = _records(stream)
        assert record["event"] == "probe_completed"
        assert record["level"] == "info"
        assert record["status_code"] == 200
        assert "timestamp" in record

    def test_level_filters_records(self) -> None:
        stream = io.StringIO()
        setup_logging(level="WARNING", fmt="json", stream=stream)

        logger = structlog.stdlib.get_logger("svccheck.test")
        logger.info("quota_evaluated")
        logger.warning("discovery_fetch_failed")

        assert [r["event"] for r in _records(stream)] == ["discovery_fetch_failed"]

    def test_console_renderer_has_no_colors(self) -> None:
        stream = io.StringIO()
        setup_logging(level="INFO", fmt="console", stream=stream)

        structlog.stdlib.get_logger("svccheck.test").warning("check_misconfigured")

        assert "check_misconfigured" in stream.getvalue()
        assert "\x1b[" not in stream.getvalue()

    def test_http_client_loggers_quieted(self) -> None:
        setup_logging(level="DEBUG", fmt="json", stream=io.StringIO())
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_single_root_handler(self) -> None:
        setup_logging(fmt="json", stream=io.StringIO())
        setup_logging(fmt="json", stream=io.StringIO())
        assert len(logging.getLogger().handlers) == 1


class TestCheckContext:
    def test_binds_service_and_run_id(self) -> None:
        stream = io.StringIO()
        setup_logging(level="INFO", fmt="json", stream=stream)
        logger = structlog.stdlib.get_logger("svccheck.test")

        with check_context("foo") as run_id:
            logger.info("check_phase")
        logger.info("after_run")

        inside, outside = _records(stream)
        assert inside["service"] == "foo"
        assert inside["run_id"] == run_id
        assert len(run_id) == 8
        assert "service" not in outside
        assert "run_id" not in outside

    def test_each_run_gets_its_own_id(self) -> None:
        with check_context("foo") as first:
            pass
        with check_context("foo") as second:
            pass
        assert first != second
