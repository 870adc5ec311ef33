"""Quota evaluation — are enough distinct instances registered?"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from svccheck.core.types import Announcement, Measurement, ProbeOutcome, Severity

logger = structlog.stdlib.get_logger()

_OK_MSG = "{count} instances of {service} found"
_NOT_OK_MSG = "{count} instances of {service} found, expected at least {threshold}"


def count_instances(announcements: Iterable[Announcement]) -> int:
    """Count distinct instances.

    Announcements sharing a server token are backed by the same host and
    count once; announcements without a token always count individually.
    """
    seen: set[str] = set()
    count = 0
    for ann in announcements:
        token = ann.server_token()
        if token is None:
            count += 1
        elif token not in seen:
            seen.add(token)
            count += 1
    return count


def evaluate_quota(
    announcements: list[Announcement],
    service: str,
    warn: int,
    crit: int,
) -> ProbeOutcome:
    """Classify the instance count of *service* against its thresholds.

    A threshold of 0 disables it. *announcements* must already be filtered
    to the target service type.
    """
    count = count_instances(announcements)

    if crit > 0 and count < crit:
        severity = Severity.CRIT
        message = _NOT_OK_MSG.format(count=count, service=service, threshold=crit)
    elif warn > 0 and count < warn:
        severity = Severity.WARN
        message = _NOT_OK_MSG.format(count=count, service=service, threshold=warn)
    else:
        severity = Severity.OK
        message = _OK_MSG.format(count=count, service=service)

    logger.debug(
        "quota_evaluated",
        service=service,
        instances=count,
        announcements=len(announcements),
        severity=severity.label,
    )
    return ProbeOutcome(
        severity=severity,
        message=message,
        measurements=[Measurement(name="instances", value=count)],
    )
