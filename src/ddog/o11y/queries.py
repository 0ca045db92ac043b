"""
Query descriptor construction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Tuple, Union

from ddog.errors import InvalidQuery
from ddog.models import Domain, Pagination, QueryDescriptor
from ddog.timerange import SECONDS_MAX_DIGITS, resolve_range


def parse_indexes(value: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    """
    Parse a comma-separated index allow-list.

    Blank entries are dropped. An empty result means every index.
    """
    if value is None:
        return ()
    parts = value.split(",") if isinstance(value, str) else [
        part for item in value for part in item.split(",")
    ]
    return tuple(p.strip() for p in parts if p.strip())


def build_pagination(domain: Domain, limit: Optional[int]) -> Pagination:
    """Build the pagination settings for a user limit. None or 0 means unlimited."""
    if limit is not None and limit < 0:
        raise InvalidQuery(f"Invalid --limit {limit}: must be 0 (unlimited) or a positive integer")
    return Pagination(limit=limit or None, page_size=domain.profile.page_cap)


def build_descriptor(
    domain: Domain,
    raw_query: str,
    now: datetime,
    from_expr: Optional[str] = None,
    to_expr: Optional[str] = None,
    limit: Optional[int] = None,
    indexes: Union[str, Iterable[str], None] = None,
    seconds_max_digits: int = SECONDS_MAX_DIGITS,
) -> QueryDescriptor:
    """
    Build a query descriptor.

    Args:
        domain: Domain to query
        raw_query: Filter text, passed to the API untouched
        now: Reference instant for relative times
        from_expr: Start time expression (default: now-1h)
        to_expr: End time expression (default: now)
        limit: Maximum number of records (None or 0: unlimited)
        indexes: Log index allow-list, comma-separated (logs only)
        seconds_max_digits: Metrics unix-seconds threshold

    Returns:
        Immutable QueryDescriptor

    Raises:
        InvalidQuery: On a bad time expression, inverted range or negative limit
    """
    time_range = resolve_range(from_expr, to_expr, domain, now, seconds_max_digits)
    pagination = build_pagination(domain, limit)

    return QueryDescriptor(
        domain=domain,
        raw_query=raw_query,
        time_range=time_range,
        pagination=pagination,
        indexes=parse_indexes(indexes) if domain is Domain.LOGS else (),
    )
