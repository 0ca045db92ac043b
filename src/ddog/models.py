"""
Core data models for ddog.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Domain(str, Enum):
    """Query surface a descriptor targets."""

    LOGS = "logs"
    SPANS = "spans"
    METRICS_QUERY = "metrics_query"
    METRICS_LIST = "metrics_list"

    @property
    def profile(self) -> "DomainProfile":
        return DOMAIN_PROFILES[self]


@dataclass(frozen=True)
class DomainProfile:
    """Per-domain quirks consulted by the resolver and the fetch engine."""

    resource: str  # name used in messages and UI links
    page_cap: int  # most records one round trip can return
    paginated: bool  # whether responses carry a continuation cursor
    accepts_iso8601: bool
    unix_millis_only: bool  # False: short integers are read as seconds


DOMAIN_PROFILES: Dict[Domain, DomainProfile] = {
    Domain.LOGS: DomainProfile(
        resource="logs",
        page_cap=1000,
        paginated=True,
        accepts_iso8601=True,
        unix_millis_only=True,
    ),
    Domain.SPANS: DomainProfile(
        resource="spans",
        page_cap=1000,
        paginated=True,
        accepts_iso8601=True,
        unix_millis_only=True,
    ),
    # The v1 metrics endpoints answer in a single response.
    Domain.METRICS_QUERY: DomainProfile(
        resource="metrics",
        page_cap=1000,
        paginated=False,
        accepts_iso8601=False,
        unix_millis_only=False,
    ),
    Domain.METRICS_LIST: DomainProfile(
        resource="metrics",
        page_cap=1000,
        paginated=False,
        accepts_iso8601=False,
        unix_millis_only=False,
    ),
}


@dataclass(frozen=True)
class TimeRange:
    """Absolute, UTC-normalized time window. Always start <= end."""

    start: datetime
    end: datetime

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.start.isoformat(), "to": self.end.isoformat()}


@dataclass(frozen=True)
class Pagination:
    """
    Result-limit policy for one query.

    limit is None when unlimited; page_size is the domain page cap.
    """

    limit: Optional[int]
    page_size: int

    def page_size_for(self, remaining: Optional[int]) -> int:
        """Page size for the next request so the last page does not overshoot."""
        if remaining is None:
            return self.page_size
        return max(1, min(self.page_size, remaining))


@dataclass(frozen=True)
class QueryDescriptor:
    """What to ask for. Built once per invocation, read-only afterwards."""

    domain: Domain
    raw_query: str
    time_range: TimeRange
    pagination: Pagination
    indexes: Tuple[str, ...] = ()  # empty means every index

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "domain": self.domain.value,
            "query": self.raw_query,
            "time_range": self.time_range.to_dict(),
            "limit": self.pagination.limit,
            "page_size": self.pagination.page_size,
            "indexes": list(self.indexes),
        }


@dataclass(frozen=True)
class PageRequest:
    """One round trip's worth of request parameters."""

    descriptor: QueryDescriptor
    page_size: int
    cursor: Optional[str] = None


@dataclass
class Page:
    """One decoded response page. next_cursor is None on the last page."""

    records: List[Any] = field(default_factory=list)
    next_cursor: Optional[str] = None
