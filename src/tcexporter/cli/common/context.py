"""Application context management for the CLI."""

import threading
from dataclasses import dataclass, field

import requests

from tcexporter.core.adapters.teamcity import TeamCityAdapter
from tcexporter.core.auth import get_session
from tcexporter.core.collector import TeamCityCollector
from tcexporter.core.config import ExporterConfig


@dataclass
class ExporterAppContext:
    """Application context holding the TeamCity session, adapter and collector."""

    config: ExporterConfig
    session: requests.Session
    adapter: TeamCityAdapter
    collector: TeamCityCollector
    fatal: threading.Event = field(default_factory=threading.Event)
    fatal_error: BaseException | None = None

    def report_fatal(self, exc: BaseException) -> None:
        """Record an unrecoverable collection error and wake up the server loop."""
        self.fatal_error = exc
        self.fatal.set()


def build_exporter_context(config: ExporterConfig) -> ExporterAppContext:
    """Build and return the application context for a validated configuration.

    Args:
        config: Exporter configuration (TeamCity address, token, limits).

    Returns:
        ExporterAppContext: Context with a configured session, adapter and collector.
    """
    session = get_session(config.token)
    adapter = TeamCityAdapter(
        session,
        config.addr,
        page_size=config.page_count,
        timeout=config.request_timeout,
        max_in_flight=config.max_in_flight,
    )
    collector = TeamCityCollector(adapter, root_project_id=config.root_project_id)
    appctx = ExporterAppContext(
        config=config, session=session, adapter=adapter, collector=collector
    )
    collector.on_fatal = appctx.report_fatal
    return appctx
