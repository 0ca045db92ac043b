"""
Command-line interface for ddog.

Results are written to stdout as NDJSON, one record per line. Diagnostics
go to stderr. Exit codes:

    0 success, 2 auth failure, 3 API error, 4 invalid query,
    5 configuration error, 6 I/O error, 7 serialization error
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

import click

from ddog import __version__
from ddog.config import DDogConfig
from ddog.errors import DDogError
from ddog.models import Domain, QueryDescriptor
from ddog.o11y import DatadogClient, build_descriptor, fetch, ui_url
from ddog.output import NdjsonWriter

logger = logging.getLogger(__name__)

TIME_HELP = (
    "Relative (now, now-15m, now-1h, now-2d, now-1w, now-3mo, now-1y), "
    "ISO 8601 (2024-01-15T10:00:00Z) or unix milliseconds (1705315200000)."
)
METRICS_TIME_HELP = (
    "Relative (now, now-15m, now-1h) or unix timestamp in seconds (1705315200) "
    "or milliseconds (1705315200000). ISO 8601 is not supported for metrics."
)


def time_options(help_text: str):
    """Attach --from/--to to a command."""

    def decorator(f):
        f = click.option("--to", "-t", "to_", default="now", show_default=True,
                         help=f"End time. {help_text}")(f)
        f = click.option("--from", "-f", "from_", default="now-1h", show_default=True,
                         help=f"Start time. {help_text}")(f)
        return f

    return decorator


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _enable_verbose(ctx, param, value):
    if value:
        configure_logging(True)


verbose_option = click.option(
    "--verbose", "-v", is_flag=True, expose_value=False, callback=_enable_verbose,
    help="Enable verbose/debug output on stderr",
)


def limit_option(default: int):
    return click.option(
        "--limit", "-l", type=int, default=default, show_default=True,
        help="Maximum number of results to return (0 for unlimited)",
    )


def run_query(descriptor: QueryDescriptor, config: DDogConfig) -> int:
    """
    Stream every record for a descriptor to stdout.

    Returns:
        Number of records written
    """
    logger.debug(f"Resource type: {descriptor.domain.value}")
    logger.debug(f"Query: {descriptor.raw_query}")
    logger.debug(f"Request: {json.dumps(descriptor.to_dict())}")
    url = ui_url(descriptor, config)
    if url:
        logger.debug(f"Datadog UI URL: {url}")

    writer = NdjsonWriter(sys.stdout.buffer)
    with DatadogClient(config) as client:
        for record in fetch(descriptor, client):
            writer.write(record)

    logger.debug(f"Returned {writer.count} {descriptor.domain.profile.resource} record(s)")
    return writer.count


def _silence_stdout() -> None:
    # Keep the interpreter from flushing into a closed pipe at exit.
    try:
        devnull = os.open(os.devnull, os.O_WRONLY)
    except OSError:
        logger.debug("Cannot open the null device")
        return
    try:
        os.dup2(devnull, sys.stdout.fileno())
    except (OSError, ValueError):
        logger.debug("stdout has no file descriptor to redirect")
    finally:
        os.close(devnull)


def execute(
    domain: Domain,
    query: str,
    from_: Optional[str],
    to_: Optional[str],
    limit: Optional[int],
    indexes: Optional[str] = None,
) -> None:
    """Load config, build the descriptor, stream results, and exit on failure."""
    try:
        config = DDogConfig.from_env()
        descriptor = build_descriptor(
            domain,
            query,
            now=datetime.now(timezone.utc),
            from_expr=from_,
            to_expr=to_,
            limit=limit,
            indexes=indexes,
        )
        run_query(descriptor, config)
    except DDogError as e:
        if isinstance(e.__cause__, BrokenPipeError):
            _silence_stdout()
        click.echo(f"Error ({e.outcome.value}): {e.message}", err=True)
        sys.exit(e.exit_code)


@click.group()
@click.version_option(version=__version__, prog_name="ddog")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose/debug output on stderr")
def main(verbose):
    """Query Datadog logs, APM spans, and metrics from the command line.

    \b
    Environment:
      DD_API_KEY   Datadog API key (required)
      DD_APP_KEY   Datadog application key (required)
      DD_SITE      Datadog site (default: datadoghq.com)
    """
    configure_logging(verbose)


@main.group()
@verbose_option
def logs():
    """Search and analyze logs."""
    pass


@logs.command("search")
@click.argument("query")
@time_options(TIME_HELP)
@limit_option(100)
@verbose_option
@click.option("--indexes", "-i", default=None,
              help="Log indexes to search, comma-separated (default: all)")
def search_logs(query, from_, to_, limit, indexes):
    """Search logs using Datadog query syntax.

    \b
    Example:
      ddog logs search "service:api AND status:error" --from now-1h
    """
    execute(Domain.LOGS, query, from_, to_, limit, indexes=indexes)


@main.group()
@verbose_option
def spans():
    """Search and analyze APM traces."""
    pass


@spans.command("search")
@click.argument("query")
@time_options(TIME_HELP)
@limit_option(100)
@verbose_option
def search_spans(query, from_, to_, limit):
    """Search APM spans using Datadog query syntax.

    \b
    Example:
      ddog spans search "service:web env:prod" --limit 50
    """
    execute(Domain.SPANS, query, from_, to_, limit)


@main.group()
@verbose_option
def metrics():
    """Query and list metrics."""
    pass


@metrics.command("query")
@click.argument("query")
@time_options(METRICS_TIME_HELP)
@limit_option(1000)
@verbose_option
def query_metrics(query, from_, to_, limit):
    """Query metric timeseries, one point per line.

    \b
    Example:
      ddog metrics query "avg:system.cpu.user{*}" --from now-15m
    """
    execute(Domain.METRICS_QUERY, query, from_, to_, limit)


@metrics.command("list")
@time_options(METRICS_TIME_HELP)
@limit_option(0)
@verbose_option
def list_metrics(from_, to_, limit):
    """List metrics actively reporting since --from."""
    execute(Domain.METRICS_LIST, "", from_, to_, limit)


if __name__ == "__main__":
    main()
