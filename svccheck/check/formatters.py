"""Render verdicts as monitoring-plugin output or JSON."""

from __future__ import annotations

import json
from typing import Any

from svccheck.core.types import AggregateVerdict, Severity


def exit_code(severity: Severity) -> int:
    return severity.exit_code


def render_perfdata(verdict: AggregateVerdict) -> str:
    return " ".join(m.render() for m in verdict.measurements)


def render_plugin_output(verdict: AggregateVerdict, service: str = "") -> str:
    """Render *verdict* in the classic plugin format.

    The first line carries the service name, the status label, the first
    message and the performance data; every remaining message follows as
    long output::

        FOO CRITICAL: 2 instances of foo found | instances=2
        ---
        status code: 503
        ...

    The service prefix is left out when *service* is empty.
    """
    messages = verdict.messages
    label = f"{service.upper()} {verdict.severity.label}" if service else verdict.severity.label
    head = f"{label}: {messages[0] if messages else ''}".rstrip()
    perf = render_perfdata(verdict)
    if perf:
        head = f"{head} | {perf}"
    return "\n".join([head, *messages[1:]])


def verdict_to_dict(verdict: AggregateVerdict) -> dict[str, Any]:
    return {
        "status": verdict.severity.label,
        "exit_code": verdict.severity.exit_code,
        "results": [
            {
                "status": o.severity.label,
                "message": o.message,
                "announcement_id": o.announcement.announcement_id if o.announcement else None,
                "service_uri": o.announcement.service_uri if o.announcement else None,
            }
            for o in verdict.outcomes
        ],
        "perfdata": [m.model_dump() for m in verdict.measurements],
    }


def render_json(verdict: AggregateVerdict) -> str:
    return json.dumps(verdict_to_dict(verdict), indent=2)
