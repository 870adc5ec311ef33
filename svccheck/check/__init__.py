"""Check engine — quota, concurrent health probes, aggregation, reconciliation."""

from svccheck.check.aggregator import ResultAggregator
from svccheck.check.exceptions import CheckError, ConfigurationError
from svccheck.check.formatters import exit_code, render_json, render_plugin_output
from svccheck.check.options import CheckOptions, Header, build_options, parse_headers
from svccheck.check.prober import HealthProber, ProbeResponse, TransportFailure, status_for
from svccheck.check.quota import count_instances, evaluate_quota
from svccheck.check.reconcile import ReconciliationGuard
from svccheck.check.runner import ServiceCheck, run_check, unknown_verdict

__all__ = [
    "CheckError",
    "CheckOptions",
    "ConfigurationError",
    "Header",
    "HealthProber",
    "ProbeResponse",
    "ReconciliationGuard",
    "ResultAggregator",
    "ServiceCheck",
    "TransportFailure",
    "build_options",
    "count_instances",
    "evaluate_quota",
    "exit_code",
    "parse_headers",
    "render_json",
    "render_plugin_output",
    "run_check",
    "status_for",
    "unknown_verdict",
]
