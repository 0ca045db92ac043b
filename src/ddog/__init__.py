"""
ddog - Query Datadog logs, APM spans, and metrics from the command line.

Results stream to stdout as newline-delimited JSON:
    Time expressions → Query descriptor → Paged API fetch → NDJSON lines

Pagination is lazy: a page is requested only after the previous one has
been written out, and never after --limit records have been emitted.
"""

from ddog.config import DDogConfig
from ddog.errors import (
    ApiError,
    AuthFailure,
    ConfigError,
    DDogError,
    InvalidQuery,
    IOFailure,
    Outcome,
    SerializationError,
)
from ddog.models import Domain, Page, PageRequest, Pagination, QueryDescriptor, TimeRange

__version__ = "0.1.0"

__all__ = [
    # Config
    "DDogConfig",
    # Errors
    "Outcome",
    "DDogError",
    "AuthFailure",
    "ApiError",
    "InvalidQuery",
    "ConfigError",
    "IOFailure",
    "SerializationError",
    # Models
    "Domain",
    "TimeRange",
    "Pagination",
    "QueryDescriptor",
    "PageRequest",
    "Page",
    # Version
    "__version__",
]
