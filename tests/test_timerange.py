from datetime import datetime, timedelta, timezone

import pytest

from ddog.errors import InvalidQuery
from ddog.models import Domain
from ddog.timerange import (
    TimeRole,
    normalize,
    resolve,
    resolve_range,
    to_iso8601,
    to_unix_millis,
    to_unix_seconds,
)

ALL_DOMAINS = list(Domain)
METRICS_DOMAINS = [Domain.METRICS_QUERY, Domain.METRICS_LIST]


@pytest.mark.parametrize(
    "expr,seconds",
    [
        ("now", 0),
        ("now-1s", 1),
        ("now-15m", 900),
        ("now-1h", 3600),
        ("now-1d", 86400),
        ("now-1w", 604800),
        ("now-1mo", 2592000),
        ("now-1y", 31536000),
        ("now-6mo", 6 * 2592000),
    ],
)
@pytest.mark.parametrize("domain", ALL_DOMAINS)
def test_relative_offsets(now, domain, expr, seconds):
    assert resolve(expr, TimeRole.FROM, domain, now) == now - timedelta(seconds=seconds)


def test_relative_plus_offset(now):
    assert resolve("now+2h", TimeRole.TO, Domain.LOGS, now) == now + timedelta(hours=2)


def test_relative_is_deterministic(now):
    first = resolve("now-90m", TimeRole.FROM, Domain.SPANS, now)
    second = resolve("now-90m", TimeRole.FROM, Domain.SPANS, now)
    assert first == second


@pytest.mark.parametrize("expr", ["now-", "now-abc", "now-1", "now-1x", "now-1hm", "now1h", "now--1h"])
def test_invalid_relative(now, expr):
    with pytest.raises(InvalidQuery):
        resolve(expr, TimeRole.FROM, Domain.LOGS, now)


@pytest.mark.parametrize(
    "expr,expected",
    [
        ("2024-01-15T10:00:00Z", datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)),
        ("2024-01-15T10:00:00+00:00", datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)),
        ("2024-01-15T10:00:00-05:00", datetime(2024, 1, 15, 15, 0, tzinfo=timezone.utc)),
        ("2024-01-15T10:00:00+09:00", datetime(2024, 1, 15, 1, 0, tzinfo=timezone.utc)),
        ("2024-01-15T10:00:00", datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)),
        ("2024-01-15T10:00:00.123Z", datetime(2024, 1, 15, 10, 0, 0, 123000, tzinfo=timezone.utc)),
        ("2024-01-15T10:00:00.123456Z", datetime(2024, 1, 15, 10, 0, 0, 123000, tzinfo=timezone.utc)),
    ],
)
@pytest.mark.parametrize("domain", [Domain.LOGS, Domain.SPANS])
def test_iso8601(now, domain, expr, expected):
    resolved = resolve(expr, TimeRole.FROM, domain, now)
    assert resolved == expected
    assert resolved.tzinfo == timezone.utc


@pytest.mark.parametrize("expr", ["2024-01-15T10:00:00Z", "2024-13-45T99:00:00Z"])
@pytest.mark.parametrize("domain", METRICS_DOMAINS)
def test_iso8601_rejected_for_metrics(now, domain, expr):
    with pytest.raises(InvalidQuery, match="not supported for metrics"):
        resolve(expr, TimeRole.FROM, domain, now)


@pytest.mark.parametrize("expr", ["2024-13-01T10:00:00Z", "2024-01-15T25:00:00Z", "2024-01-15T10:00Z"])
def test_invalid_iso8601(now, expr):
    with pytest.raises(InvalidQuery):
        resolve(expr, TimeRole.FROM, Domain.LOGS, now)


@pytest.mark.parametrize("domain", [Domain.LOGS, Domain.SPANS])
def test_unix_always_milliseconds_for_logs_and_spans(now, domain):
    assert resolve("1705315200000", TimeRole.FROM, domain, now) == datetime(
        2024, 1, 15, 10, 40, tzinfo=timezone.utc
    )
    # 10 digits are still milliseconds here
    assert resolve("1705315200", TimeRole.FROM, domain, now) == datetime(
        1970, 1, 20, 17, 41, 55, 200000, tzinfo=timezone.utc
    )


@pytest.mark.parametrize("domain", METRICS_DOMAINS)
def test_unix_seconds_and_millis_agree_for_metrics(now, domain):
    seconds = resolve("1705315200", TimeRole.FROM, domain, now)
    millis = resolve("1705315200000", TimeRole.FROM, domain, now)
    assert seconds == millis == datetime(2024, 1, 15, 10, 40, tzinfo=timezone.utc)


def test_metrics_digit_threshold_is_configurable(now):
    # 11 digits are milliseconds by default, seconds with a wider threshold
    assert to_unix_millis(resolve("17053152000", TimeRole.FROM, Domain.METRICS_QUERY, now)) == 17053152000
    assert to_unix_seconds(
        resolve("17053152000", TimeRole.FROM, Domain.METRICS_QUERY, now, seconds_max_digits=11)
    ) == 17053152000


def test_unix_epoch_zero(now):
    assert to_unix_millis(resolve("0", TimeRole.FROM, Domain.LOGS, now)) == 0


@pytest.mark.parametrize("expr", ["", "invalid", "2024-01-15", "10:00:00", "-1000", "1.5"])
@pytest.mark.parametrize("domain", ALL_DOMAINS)
def test_unrecognized_expressions(now, domain, expr):
    with pytest.raises(InvalidQuery):
        resolve(expr, TimeRole.FROM, domain, now)


def test_overflowing_values_are_invalid(now):
    with pytest.raises(InvalidQuery):
        resolve("now-99999999999y", TimeRole.FROM, Domain.LOGS, now)
    with pytest.raises(InvalidQuery):
        resolve("9" * 30, TimeRole.FROM, Domain.LOGS, now)


def test_defaults(now):
    assert resolve(None, TimeRole.FROM, Domain.LOGS, now) == now - timedelta(hours=1)
    assert resolve(None, TimeRole.TO, Domain.LOGS, now) == now


def test_resolve_range(now):
    time_range = resolve_range("now-15m", None, Domain.SPANS, now)
    assert time_range.start == now - timedelta(minutes=15)
    assert time_range.end == now


def test_resolve_range_allows_equal_ends(now):
    time_range = resolve_range("now", "now", Domain.LOGS, now)
    assert time_range.start == time_range.end


@pytest.mark.parametrize("domain", ALL_DOMAINS)
def test_inverted_range_is_invalid(now, domain):
    with pytest.raises(InvalidQuery, match="is after"):
        resolve_range("now", "now-1h", domain, now)


def test_inverted_absolute_range_is_invalid(now):
    with pytest.raises(InvalidQuery):
        resolve_range("2024-01-15T11:00:00Z", "2024-01-15T10:00:00Z", Domain.LOGS, now)


def test_mixed_range(now):
    time_range = resolve_range("2024-01-15T09:00:00Z", "now", Domain.LOGS, now)
    assert time_range.end - time_range.start == timedelta(hours=1)


def test_normalize_truncates_and_converts():
    local = datetime(2024, 1, 15, 12, 0, 0, 123999, tzinfo=timezone(timedelta(hours=2)))
    assert normalize(local) == datetime(2024, 1, 15, 10, 0, 0, 123000, tzinfo=timezone.utc)
    assert normalize(datetime(2024, 1, 15, 10, 0)).tzinfo == timezone.utc


def test_renderers(now):
    assert to_iso8601(now) == "2024-01-15T10:00:00.000Z"
    assert to_unix_seconds(now) == 1705312800
    assert to_unix_millis(now) == 1705312800000
