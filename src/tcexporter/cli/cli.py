"""CLI application for the TeamCity Prometheus exporter."""

import typer

from tcexporter.cli.commands.exporter import scrape, serve
from tcexporter.cli.common.context import build_exporter_context
from tcexporter.cli.common.exits import die
from tcexporter.cli.common.logs import configure_logging
from tcexporter.cli.common.options import (
    AddrOpt,
    LogFormatOpt,
    LogLevelOpt,
    MaxInFlightOpt,
    PageCountOpt,
    RequestTimeoutOpt,
    RootProjectOpt,
    TokenOpt,
)
from tcexporter.core.config import ExporterConfig
from tcexporter.core.errors import ConfigError

app = typer.Typer(
    help="tcexporter - TeamCity metrics for Prometheus",
    no_args_is_help=True,
)


@app.callback()
def _init(
    ctx: typer.Context,
    addr: str = AddrOpt,
    token: str = TokenOpt,
    root_project_id: str = RootProjectOpt,
    page_count: int = PageCountOpt,
    max_in_flight: int = MaxInFlightOpt,
    request_timeout: float = RequestTimeoutOpt,
    log_level: str = LogLevelOpt,
    log_format: str = LogFormatOpt,
):
    """Load configuration and build the TeamCity client once per invocation."""
    try:
        config = ExporterConfig(
            addr=addr.strip(),
            token=token.strip(),
            root_project_id=root_project_id,
            page_count=page_count,
            max_in_flight=max_in_flight,
            request_timeout=request_timeout,
            logging_level=log_level,
            logging_format=log_format.lower(),
        ).validate()
    except ConfigError as e:
        die(str(e), code=2)

    configure_logging(config.logging_level, config.logging_format)
    ctx.obj = build_exporter_context(config)


app.command()(serve)
app.command()(scrape)


if __name__ == "__main__":
    app()
