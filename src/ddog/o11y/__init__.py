"""
Datadog query API integration.

Build descriptors, page through logs, spans, and metrics.
"""

from ddog.o11y.client import DatadogClient
from ddog.o11y.links import ui_url
from ddog.o11y.pagination import decode_record, fetch
from ddog.o11y.queries import build_descriptor, parse_indexes

__all__ = [
    "DatadogClient",
    "build_descriptor",
    "parse_indexes",
    "fetch",
    "decode_record",
    "ui_url",
]
