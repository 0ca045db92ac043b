"""
Datadog API client.

Issues one HTTP request per PageRequest and turns the response into a Page.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ddog.config import DDogConfig
from ddog.errors import ApiError, IOFailure, classify_response
from ddog.models import Domain, Page, PageRequest
from ddog.timerange import to_iso8601, to_unix_seconds

logger = logging.getLogger(__name__)

LOGS_SEARCH_PATH = "/api/v2/logs/events/search"
SPANS_SEARCH_PATH = "/api/v2/spans/events/search"
METRICS_QUERY_PATH = "/api/v1/query"
METRICS_LIST_PATH = "/api/v1/metrics"


class DatadogClient:
    """
    Client for the Datadog query API.

    Callable as client(request) -> Page, which makes it the api_caller the
    pagination engine expects. Supports logs and spans search (v2, cursor
    paginated) and metrics query/list (v1, single response).
    """

    def __init__(
        self,
        config: DDogConfig,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Credentials and site
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.config = config
        self.client = httpx.Client(
            base_url=config.api_url,
            headers={**config.auth_headers(), "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def __call__(self, request: PageRequest) -> Page:
        handlers = {
            Domain.LOGS: self.search_logs,
            Domain.SPANS: self.search_spans,
            Domain.METRICS_QUERY: self.query_metrics,
            Domain.METRICS_LIST: self.list_metrics,
        }
        return handlers[request.descriptor.domain](request)

    def search_logs(self, request: PageRequest) -> Page:
        """
        Fetch one page of log events.

        Args:
            request: Page request for a logs descriptor

        Returns:
            Page of raw log events and the next cursor, if any
        """
        descriptor = request.descriptor
        body = {
            "filter": {
                **self._filter(request),
                "indexes": list(descriptor.indexes) or ["*"],
            },
            "page": self._page(request),
            "sort": "timestamp",
        }
        data = self._send("POST", LOGS_SEARCH_PATH, "logs", json=body)
        return self._cursor_page(data)

    def search_spans(self, request: PageRequest) -> Page:
        """
        Fetch one page of APM spans.

        Args:
            request: Page request for a spans descriptor

        Returns:
            Page of raw spans and the next cursor, if any
        """
        body = {
            "data": {
                "type": "search_request",
                "attributes": {
                    "filter": self._filter(request),
                    "page": self._page(request),
                    "sort": "timestamp",
                },
            }
        }
        data = self._send("POST", SPANS_SEARCH_PATH, "spans", json=body)
        return self._cursor_page(data)

    def query_metrics(self, request: PageRequest) -> Page:
        """
        Query metric timeseries.

        Every point of every returned series becomes one record. Points
        with a null timestamp or value are skipped.

        Args:
            request: Page request for a metrics query descriptor

        Returns:
            Single page of flattened metric points
        """
        time_range = request.descriptor.time_range
        data = self._send(
            "GET",
            METRICS_QUERY_PATH,
            "metrics",
            params={
                "from": to_unix_seconds(time_range.start),
                "to": to_unix_seconds(time_range.end),
                "query": request.descriptor.raw_query,
            },
        )

        if data.get("status") == "error":
            raise ApiError(f"Metrics query failed: {data.get('error') or 'unknown error'}")

        series = data.get("series") or []
        if not isinstance(series, list):
            raise ApiError("Malformed response: 'series' is not a list")

        return Page(records=flatten_series(series))

    def list_metrics(self, request: PageRequest) -> Page:
        """
        List metrics actively reporting since the start of the range.

        Args:
            request: Page request for a metrics list descriptor

        Returns:
            Single page of {"metric": name} records
        """
        data = self._send(
            "GET",
            METRICS_LIST_PATH,
            "metrics",
            params={"from": to_unix_seconds(request.descriptor.time_range.start)},
        )

        names = data.get("metrics") or []
        if not isinstance(names, list):
            raise ApiError("Malformed response: 'metrics' is not a list")

        return Page(records=[{"metric": name} for name in names])

    def _filter(self, request: PageRequest) -> Dict[str, Any]:
        time_range = request.descriptor.time_range
        return {
            "query": request.descriptor.raw_query,
            "from": to_iso8601(time_range.start),
            "to": to_iso8601(time_range.end),
        }

    def _page(self, request: PageRequest) -> Dict[str, Any]:
        page: Dict[str, Any] = {"limit": request.page_size}
        if request.cursor:
            page["cursor"] = request.cursor
        return page

    def _cursor_page(self, data: Dict[str, Any]) -> Page:
        records = data.get("data")
        if records is None:
            records = []
        if not isinstance(records, list):
            raise ApiError("Malformed response: 'data' is not a list")

        cursor = None
        meta = data.get("meta")
        if isinstance(meta, dict) and isinstance(meta.get("page"), dict):
            cursor = meta["page"].get("after")

        return Page(records=records, next_cursor=cursor or None)

    def _send(self, method: str, path: str, resource: str, **kwargs: Any) -> Dict[str, Any]:
        logger.debug(f"API {method} {self.config.api_url}{path}")

        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            raise IOFailure(f"Request to {path} failed: {e}") from e

        error = classify_response(response, resource)
        if error is not None:
            logger.debug(f"API error: {error} (context: {resource} API request)")
            raise error

        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(f"Malformed response from {path}: {e}", response.status_code) from e

        if not isinstance(data, dict):
            raise ApiError(f"Malformed response from {path}: expected a JSON object")
        return data

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self) -> "DatadogClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def flatten_series(series: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten v1 query series into one record per (timestamp, value) point."""
    points = []
    for item in series:
        if not isinstance(item, dict):
            raise ApiError("Malformed response: series entry is not an object")

        base: Dict[str, Any] = {"metric": item.get("metric") or ""}
        for key in ("display_name", "query_index", "aggr"):
            if item.get(key) is not None:
                base[key] = item[key]
        base["scope"] = item.get("scope") or ""
        base["tag_set"] = item.get("tag_set") or []

        for point in item.get("pointlist") or []:
            if not isinstance(point, list) or len(point) < 2:
                continue
            timestamp_ms, value = point[0], point[1]
            if timestamp_ms is None or value is None:
                continue
            try:
                timestamp = int(timestamp_ms) // 1000
            except (TypeError, ValueError, OverflowError) as e:
                raise ApiError(f"Malformed response: bad point timestamp {timestamp_ms!r}") from e
            points.append({**base, "timestamp": timestamp, "value": value})

    return points
