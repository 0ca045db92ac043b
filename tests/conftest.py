import json
from datetime import datetime, timezone

import httpx
import pytest

from ddog.config import DDogConfig

FIXED_NOW = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def config():
    return DDogConfig(api_key="test-api-key", app_key="test-app-key")


@pytest.fixture
def dd_env(monkeypatch):
    monkeypatch.setenv("DD_API_KEY", "test-api-key")
    monkeypatch.setenv("DD_APP_KEY", "test-app-key")
    monkeypatch.delenv("DD_SITE", raising=False)


class RecordingHandler:
    """Replays canned responses in order and records every request."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        return self.responses.pop(0)

    def bodies(self):
        return [json.loads(r.content) for r in self.requests]


def cursor_page(records, after=None):
    body = {"data": records, "meta": {"page": {"after": after}} if after else {}}
    return httpx.Response(200, json=body)


def log_events(start, count):
    return [{"id": f"log-{i}", "attributes": {"message": f"event {i}"}} for i in range(start, start + count)]
