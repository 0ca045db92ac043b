"""
Error types, outcomes, and exit codes for ddog.

Every failure the tool can report is a DDogError carrying an Outcome.
The CLI turns the first unrecovered one into a diagnostic line and an
exit code.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

import httpx


class Outcome(str, Enum):
    """Terminal result of one invocation."""

    SUCCESS = "success"
    AUTH_FAILURE = "auth_failure"
    API_ERROR = "api_error"
    INVALID_QUERY = "invalid_query"
    CONFIG_ERROR = "config_error"
    IO_ERROR = "io_error"
    SERIALIZATION_ERROR = "serialization_error"

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]


_EXIT_CODES: Dict[Outcome, int] = {
    Outcome.SUCCESS: 0,
    Outcome.AUTH_FAILURE: 2,
    Outcome.API_ERROR: 3,
    Outcome.INVALID_QUERY: 4,
    Outcome.CONFIG_ERROR: 5,
    Outcome.IO_ERROR: 6,
    Outcome.SERIALIZATION_ERROR: 7,
}


class DDogError(Exception):
    """Base class for all classified failures."""

    outcome: Outcome = Outcome.API_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def exit_code(self) -> int:
        return self.outcome.exit_code


class AuthFailure(DDogError):
    outcome = Outcome.AUTH_FAILURE


class ApiError(DDogError):
    """Non-2xx response other than 401/403, or a malformed success body."""

    outcome = Outcome.API_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidQuery(DDogError):
    """Bad time expression, inverted range, or bad limit."""

    outcome = Outcome.INVALID_QUERY


class ConfigError(DDogError):
    outcome = Outcome.CONFIG_ERROR


class IOFailure(DDogError):
    """Network, transport, or output-stream failure."""

    outcome = Outcome.IO_ERROR


class SerializationError(DDogError):
    outcome = Outcome.SERIALIZATION_ERROR


# Extra context appended to 403 messages, keyed by resource name.
_FORBIDDEN_HINTS: Dict[str, str] = {
    "spans": (
        "APM spans require different permissions than logs. "
        "Ensure your API key has 'APM and Infrastructure' read permissions."
    ),
}


def _error_details(response: httpx.Response) -> str:
    try:
        body: Any = response.json()
    except ValueError:
        return response.text.strip()[:200]

    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            return "; ".join(str(e) for e in errors)
        if body.get("error"):
            return str(body["error"])
    return ""


def classify_response(response: httpx.Response, resource: str = "") -> Optional[DDogError]:
    """
    Classify an HTTP response.

    Args:
        response: Response returned by the API
        resource: Resource name used in messages (logs, spans, metrics)

    Returns:
        None for a 2xx response, otherwise the matching DDogError
    """
    status = response.status_code
    if 200 <= status < 300:
        return None

    details = _error_details(response)
    suffix = f" {details}" if details else ""

    if status == 401:
        return AuthFailure(f"Authentication failed (401): Invalid API or App key.{suffix}")

    if status == 403:
        target = resource or "this resource"
        message = f"Access denied (403): Your API key may not have permission to access {target}."
        hint = _FORBIDDEN_HINTS.get(resource)
        if hint:
            message = f"{message} {hint}"
        return AuthFailure(f"{message}{suffix}")

    reason = response.reason_phrase or "HTTP error"
    return ApiError(f"{status} {reason}.{suffix}", status_code=status)
