"""
Cursor-driven pagination shared by every domain.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Iterator, Optional

from ddog.errors import SerializationError
from ddog.models import Page, PageRequest, QueryDescriptor

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
ApiCaller = Callable[[PageRequest], Page]


def decode_record(raw: Any) -> Record:
    """
    Decode one raw page item into a record.

    Items arrive either already parsed or as JSON text. Anything that is
    not a JSON object is rejected.
    """
    if isinstance(raw, (bytes, bytearray, str)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise SerializationError(f"Failed to decode record: {e}") from e

    if not isinstance(raw, dict):
        raise SerializationError(
            f"Failed to decode record: expected a JSON object, got {type(raw).__name__}"
        )
    return raw


def fetch(descriptor: QueryDescriptor, api_caller: ApiCaller) -> Iterator[Record]:
    """
    Lazily yield records for a descriptor, one page at a time.

    The next page is only requested once every record of the current page
    has been consumed. Iteration stops after the limit-th record without
    another request, on a page with no continuation cursor, or on an empty
    page. Domains without cursor paging stop after their single response. Errors raised by api_caller propagate unchanged.

    Args:
        descriptor: What to fetch
        api_caller: Issues one request and returns one decoded page

    Yields:
        Records in the order the API returned them
    """
    pagination = descriptor.pagination
    profile = descriptor.domain.profile
    remaining: Optional[int] = pagination.limit
    cursor: Optional[str] = None
    pages = 0
    count = 0

    while True:
        request = PageRequest(
            descriptor=descriptor,
            page_size=pagination.page_size_for(remaining),
            cursor=cursor,
        )
        pages += 1
        logger.debug(
            f"Requesting page {pages} (page_size={request.page_size}, "
            f"cursor={'yes' if cursor else 'no'})"
        )
        page = api_caller(request)
        logger.debug(f"Page {pages}: {len(page.records)} record(s), more={page.next_cursor is not None}")

        if not page.records:
            break

        for raw in page.records:
            yield decode_record(raw)
            count += 1
            if remaining is not None:
                remaining -= 1
                if remaining == 0:
                    logger.debug(f"Reached limit of {pagination.limit} results")
                    return

        if not profile.paginated or not page.next_cursor:
            break
        cursor = page.next_cursor

    logger.debug(f"Fetched {count} record(s) in {pages} page(s)")
