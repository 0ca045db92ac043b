"""
Time expression parsing.

Turns the strings accepted by --from/--to into absolute UTC instants with
millisecond resolution. Three grammars are tried in order:

    Relative:   now, now-15m, now-1h, now+2d
                units: s, m, h, d, w, mo (30d), y (365d)
    ISO 8601:   2024-01-15T10:00:00Z, 2024-01-15T10:00:00.123+02:00
                (not accepted by the metrics endpoints)
    Unix:       1705315200000 (milliseconds)
                metrics also accept seconds: 1705315200
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from ddog.errors import InvalidQuery
from ddog.models import Domain, TimeRange

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DEFAULT_FROM = "now-1h"
DEFAULT_TO = "now"

UNIT_SECONDS = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
    "mo": 2592000,
    "y": 31536000,
}

# Metrics integers with at most this many digits are read as seconds.
SECONDS_MAX_DIGITS = 10

_RELATIVE_RE = re.compile(r"^now(?:(?P<sign>[+-])(?P<amount>\d+)(?P<unit>mo|s|m|h|d|w|y))?$")
_ISO_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T")
_ISO_RE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"T(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.(?P<fraction>\d{1,9}))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:?\d{2})?$"
)
_UNIX_RE = re.compile(r"^\d+$")


class TimeRole(str, Enum):
    """Which end of the range an expression describes."""

    FROM = "from"
    TO = "to"

    @property
    def default(self) -> str:
        return DEFAULT_FROM if self is TimeRole.FROM else DEFAULT_TO


def normalize(instant: datetime) -> datetime:
    """Convert to UTC and truncate to milliseconds. Naive values are taken as UTC."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    instant = instant.astimezone(timezone.utc)
    return instant.replace(microsecond=instant.microsecond // 1000 * 1000)


def to_unix_millis(instant: datetime) -> int:
    return (normalize(instant) - EPOCH) // timedelta(milliseconds=1)


def to_unix_seconds(instant: datetime) -> int:
    return (normalize(instant) - EPOCH) // timedelta(seconds=1)


def to_iso8601(instant: datetime) -> str:
    """Render as 2024-01-15T10:00:00.000Z."""
    return normalize(instant).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_relative(match: "re.Match[str]", now: datetime) -> datetime:
    if match.group("sign") is None:
        return now
    offset = timedelta(seconds=int(match.group("amount")) * UNIT_SECONDS[match.group("unit")])
    return now - offset if match.group("sign") == "-" else now + offset


def _parse_iso8601(expr: str) -> datetime:
    match = _ISO_RE.match(expr)
    if not match:
        raise ValueError("not a complete ISO 8601 date-time")

    fraction = (match.group("fraction") or "").ljust(6, "0")[:6]
    tz = timezone.utc
    offset = match.group("offset")
    if offset and offset not in ("Z", "z"):
        sign = -1 if offset[0] == "-" else 1
        digits = offset[1:].replace(":", "")
        tz = timezone(sign * timedelta(hours=int(digits[:2]), minutes=int(digits[2:])))

    return datetime(
        int(match.group("year")),
        int(match.group("month")),
        int(match.group("day")),
        int(match.group("hour")),
        int(match.group("minute")),
        int(match.group("second")),
        int(fraction),
        tzinfo=tz,
    )


def _parse_unix(expr: str, domain: Domain, seconds_max_digits: int) -> datetime:
    value = int(expr)
    if not domain.profile.unix_millis_only and len(expr) <= seconds_max_digits:
        return EPOCH + timedelta(seconds=value)
    return EPOCH + timedelta(milliseconds=value)


def resolve(
    expr: Optional[str],
    role: TimeRole,
    domain: Domain,
    now: datetime,
    seconds_max_digits: int = SECONDS_MAX_DIGITS,
) -> datetime:
    """
    Resolve a time expression to an absolute instant.

    Args:
        expr: Expression from the command line (None uses the role default)
        role: Whether this is the start or the end of the range
        domain: Domain the query targets; decides ISO 8601 and unix handling
        now: Reference instant for relative expressions
        seconds_max_digits: Metrics integers up to this length are seconds

    Returns:
        UTC instant truncated to milliseconds

    Raises:
        InvalidQuery: If the expression matches no accepted grammar
    """
    text = (expr if expr is not None else role.default).strip()
    now = normalize(now)

    try:
        match = _RELATIVE_RE.match(text)
        if match:
            return normalize(_parse_relative(match, now))

        if _ISO_PREFIX_RE.match(text):
            if not domain.profile.accepts_iso8601:
                raise InvalidQuery(
                    f"Invalid --{role.value} time '{text}': ISO 8601 timestamps are not "
                    "supported for metrics. Use a relative time (now-1h) or a unix timestamp."
                )
            return normalize(_parse_iso8601(text))

        if _UNIX_RE.match(text):
            return normalize(_parse_unix(text, domain, seconds_max_digits))
    except (ValueError, OverflowError) as e:
        raise InvalidQuery(f"Invalid --{role.value} time '{text}': {e}") from e

    raise InvalidQuery(
        f"Invalid --{role.value} time '{text}'. Use a relative time (now, now-15m, now-1h), "
        "an ISO 8601 timestamp, or a unix timestamp."
    )


def resolve_range(
    from_expr: Optional[str],
    to_expr: Optional[str],
    domain: Domain,
    now: datetime,
    seconds_max_digits: int = SECONDS_MAX_DIGITS,
) -> TimeRange:
    """Resolve both ends of a range and check that start <= end."""
    start = resolve(from_expr, TimeRole.FROM, domain, now, seconds_max_digits)
    end = resolve(to_expr, TimeRole.TO, domain, now, seconds_max_digits)

    if start > end:
        raise InvalidQuery(
            f"Invalid time range: --from ({to_iso8601(start)}) is after --to ({to_iso8601(end)})"
        )

    logger.debug(f"Resolved time range {to_iso8601(start)} .. {to_iso8601(end)}")
    return TimeRange(start=start, end=end)
