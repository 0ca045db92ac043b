"""
Datadog web UI links for a query, logged in verbose mode.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from ddog.config import DDogConfig
from ddog.models import Domain, QueryDescriptor
from ddog.timerange import to_unix_millis


def ui_url(descriptor: QueryDescriptor, config: DDogConfig) -> Optional[str]:
    """
    Build the Datadog UI URL showing the same logs or spans.

    Returns:
        The URL, or None for metrics domains
    """
    query = quote(descriptor.raw_query, safe="")
    from_ts = to_unix_millis(descriptor.time_range.start)
    to_ts = to_unix_millis(descriptor.time_range.end)

    if descriptor.domain is Domain.LOGS:
        return f"{config.app_url}/logs?query={query}&from_ts={from_ts}&to_ts={to_ts}&live=false"
    if descriptor.domain is Domain.SPANS:
        return f"{config.app_url}/apm/traces?query={query}&from_ts={from_ts}&to_ts={to_ts}"
    return None
