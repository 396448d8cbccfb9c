"""Commands for serving and inspecting TeamCity metrics."""

import dataclasses
import logging

import typer
from prometheus_client import CollectorRegistry, generate_latest

from tcexporter.cli.common.context import ExporterAppContext
from tcexporter.cli.common.exits import die, exit_from_exc, warn_exit
from tcexporter.cli.common.options import ListenOpt, PathOpt, PortOpt, TableOpt
from tcexporter.cli.common.output import out
from tcexporter.cli.server import serve_metrics
from tcexporter.core.errors import ConfigError, PaginationUnsupportedError

logger = logging.getLogger(__name__)

_FATAL_POLL_SECONDS = 1.0


def serve(
    ctx: typer.Context,
    listen: str = ListenOpt,
    port: int = PortOpt,
    path: str = PathOpt,
):
    """
    Serve TeamCity metrics for Prometheus to scrape.
    """
    appctx: ExporterAppContext = ctx.obj

    try:
        config = dataclasses.replace(
            appctx.config, metrics_listen=listen, metrics_port=port, metrics_path=path
        ).validate()
    except ConfigError as e:
        die(str(e), code=2)

    registry = CollectorRegistry()
    logger.info("registering TeamCity metrics collector")
    registry.register(appctx.collector)

    try:
        server, _ = serve_metrics(
            registry, config.metrics_listen, config.metrics_port, config.metrics_path
        )
    except OSError as e:
        exit_from_exc(
            e,
            message=f"Cannot listen on {config.metrics_listen}:{config.metrics_port}: {e}",
        )

    try:
        while not appctx.fatal.wait(_FATAL_POLL_SECONDS):
            pass
    except KeyboardInterrupt:
        logger.info("shutting down")
        server.shutdown()
        raise typer.Exit(0)

    server.shutdown()
    die(f"Stopping after unrecoverable error: {appctx.fatal_error}", code=1)


def scrape(
    ctx: typer.Context,
    table: bool = TableOpt,
):
    """
    Run a single collection and print the result.
    """
    appctx: ExporterAppContext = ctx.obj

    if table:
        try:
            with out.status("Collecting TeamCity metrics..."):
                samples = appctx.collector.collect_samples()
        except PaginationUnsupportedError as e:
            exit_from_exc(e, message=str(e), code=1)

        if not samples:
            warn_exit("No samples collected", code=0)

        out.samples_table(samples, title="TeamCity metrics")
        out.summary_table(samples, title="Samples per metric")
        return

    registry = CollectorRegistry()
    registry.register(appctx.collector)
    try:
        payload = generate_latest(registry)
    except PaginationUnsupportedError as e:
        exit_from_exc(e, message=str(e), code=1)

    typer.echo(payload.decode("utf-8"), nl=False)
