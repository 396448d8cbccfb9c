"""Common CLI options for the CLI.

Every option can also be set through its ``TEAMCITY_*`` environment variable.
"""

import typer

from tcexporter.core.config import (
    DEFAULT_LOGGING_FORMAT,
    DEFAULT_LOGGING_LEVEL,
    DEFAULT_MAX_IN_FLIGHT,
    DEFAULT_METRICS_LISTEN,
    DEFAULT_METRICS_PATH,
    DEFAULT_METRICS_PORT,
    DEFAULT_PAGE_COUNT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_ROOT_PROJECT_ID,
    env_name,
)

AddrOpt = typer.Option(
    "",
    "--addr",
    envvar=env_name("addr"),
    help="TeamCity server address (e.g. https://teamcity.example.com)",
    show_default=False,
)

TokenOpt = typer.Option(
    "",
    "--token",
    envvar=env_name("token"),
    help="TeamCity access token",
    show_default=False,
)

RootProjectOpt = typer.Option(
    DEFAULT_ROOT_PROJECT_ID,
    "--root-project-id",
    envvar=env_name("root.project.id"),
    help="Project the tree walk starts from",
)

PageCountOpt = typer.Option(
    DEFAULT_PAGE_COUNT,
    "--page-count",
    envvar=env_name("page.count"),
    help="Number of builds/agents requested per call (single page only)",
)

MaxInFlightOpt = typer.Option(
    DEFAULT_MAX_IN_FLIGHT,
    "--max-in-flight",
    envvar=env_name("max.in.flight"),
    help="Maximum concurrent TeamCity requests (0 = unbounded)",
)

RequestTimeoutOpt = typer.Option(
    DEFAULT_REQUEST_TIMEOUT,
    "--request-timeout",
    envvar=env_name("request.timeout"),
    help="Timeout in seconds for each TeamCity request attempt",
)

LogLevelOpt = typer.Option(
    DEFAULT_LOGGING_LEVEL,
    "--log-level",
    envvar=env_name("logging.level"),
    help="Logging level (trace, debug, info, warn, error, fatal)",
)

LogFormatOpt = typer.Option(
    DEFAULT_LOGGING_FORMAT,
    "--log-format",
    envvar=env_name("logging.format"),
    help="Logging format (json, text, logfmt)",
)

ListenOpt = typer.Option(
    DEFAULT_METRICS_LISTEN,
    "--listen",
    envvar=env_name("metrics.listen"),
    help="Address the metrics endpoint listens on",
)

PortOpt = typer.Option(
    DEFAULT_METRICS_PORT,
    "--port",
    envvar=env_name("metrics.port"),
    help="Port the metrics endpoint listens on",
)

PathOpt = typer.Option(
    DEFAULT_METRICS_PATH,
    "--path",
    envvar=env_name("metrics.path"),
    help="HTTP path of the metrics endpoint",
)

TableOpt = typer.Option(
    False,
    "--table",
    help="Render samples as a table instead of the exposition format",
)
