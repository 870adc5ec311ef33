#!/usr/bin/env python3
"""Service check CLI — quota and health check for one discovered service.

Usage::

    # At least one instance of "foo", probe each instance's /health
    python scripts/check_service.py -d http://discovery.example.com -s foo

    # Warn below 3 instances, critical below 2, custom endpoint and header
    python scripts/check_service.py -d http://discovery.example.com -s foo \\
        -w 3 -c 2 -e /status -H "Accept: application/json"

    # Quota only, no health probes
    python scripts/check_service.py -d http://discovery.example.com -s foo -n

    # Settings from YAML, overridden by flags
    python scripts/check_service.py --config config/settings.yaml -s foo

Exit codes follow the plugin convention: 0 OK, 1 WARNING, 2 CRITICAL, 3 UNKNOWN.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from svccheck.check.formatters import render_json, render_plugin_output
from svccheck.check.runner import run_check, unknown_verdict
from svccheck.core.config import Settings, load_settings
from svccheck.core.logging import setup_logging
from svccheck.core.types import Severity


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return *settings* with every flag given on the command line applied."""
    discovery: dict[str, Any] = {}
    if args.discovery is not None:
        discovery["url"] = args.discovery

    check: dict[str, Any] = {}
    flag_map = {
        "service": "service",
        "endpoint": "endpoint",
        "timeout": "timeout_secs",
        "warn_fewer": "warn_fewer",
        "crit_fewer": "crit_fewer",
        "max_concurrency": "max_concurrency",
        "deadline": "deadline_secs",
    }
    for flag, field in flag_map.items():
        value = getattr(args, flag)
        if value is not None:
            check[field] = value
    if args.no_healthcheck:
        check["skip_healthcheck"] = True
    if args.header:
        check["headers"] = list(args.header)

    return settings.model_copy(update={
        "discovery": settings.discovery.model_copy(update=discovery),
        "check": settings.check.model_copy(update=check),
    })


async def run(args: argparse.Namespace) -> int:
    """Run one check, print the result and return the exit code."""
    settings = apply_overrides(load_settings(args.config), args)
    setup_logging(level=args.log_level)

    verdict = await run_check(settings)

    if args.json:
        print(render_json(verdict))
    else:
        print(render_plugin_output(verdict, settings.check.service))
    return verdict.severity.exit_code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check instance quota and health of a service registered in discovery.",
    )
    parser.add_argument("-d", "--discovery", default=None, help="discovery server URL")
    parser.add_argument("-s", "--service", default=None, help="service name to check")
    parser.add_argument(
        "-e", "--endpoint", default=None,
        help="healthcheck endpoint, relative to each instance URI (default: health)",
    )
    parser.add_argument(
        "-n", "--no-healthcheck", action="store_true",
        help="disable healthcheck, only check the instance quota",
    )
    parser.add_argument(
        "-t", "--timeout", type=float, default=None,
        help="http timeout for health endpoint in seconds (default: 5)",
    )
    parser.add_argument(
        "-c", "--crit-fewer", type=int, default=None,
        help="minimum instances before critical, 0 to disable (default: 1)",
    )
    parser.add_argument(
        "-w", "--warn-fewer", type=int, default=None,
        help="minimum instances before warning, 0 to disable (default: 1)",
    )
    parser.add_argument(
        "-H", "--header", action="append", default=None,
        help="http header for health endpoint, repeatable (eg: 'Accept: application/json')",
    )
    parser.add_argument(
        "--max-concurrency", type=int, default=None,
        help="maximum concurrent health probes, 0 for unbounded (default: 0)",
    )
    parser.add_argument(
        "--deadline", type=float, default=None,
        help="abort health probes still running after this many seconds",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override log level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    try:
        code = asyncio.run(run(args))
    except KeyboardInterrupt:
        print(render_plugin_output(unknown_verdict("check interrupted"), args.service or ""))
        code = Severity.UNKNOWN.exit_code
    sys.exit(code)


if __name__ == "__main__":
    main()
