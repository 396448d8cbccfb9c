"""Agent metrics collection.

The agent list is flat, so it is fetched once per scrape and published as
four gauges per agent. Request failures are logged and swallowed here; a
further page of agents is fatal and is raised before anything is published.
"""

import logging
from typing import Protocol

from tcexporter.core.errors import PaginationUnsupportedError, TeamCityRequestError
from tcexporter.core.metrics import MetricDescriptors, MetricSink
from tcexporter.core.models import AgentListResult

logger = logging.getLogger(__name__)


class AgentsAdapter(Protocol):
    """Interface for listing build agents."""

    def list_agents(self) -> AgentListResult:
        """Return the first page of agents."""
        ...


def collect_agent_metrics(
    adapter: AgentsAdapter,
    descriptors: MetricDescriptors,
    sink: MetricSink,
) -> int:
    """Publish agent gauges and return the number of agents published."""
    logger.info("collecting TeamCity agent metrics")
    try:
        result = adapter.list_agents()
    except TeamCityRequestError as exc:
        logger.error("agent collection failed: %s", exc)
        return 0

    if result.has_next_page:
        raise PaginationUnsupportedError("agents", result.next_href or "")

    for agent in result.agents:
        labels = (str(agent.id), agent.name)

        sink.emit(descriptors.agent_authorized, int(agent.authorized), labels)
        sink.emit(descriptors.agent_connected, int(agent.connected), labels)
        sink.emit(descriptors.agent_enabled, int(agent.enabled), labels)
        sink.emit(descriptors.agent_current_build_id, agent.current_build_id, labels)

    return len(result.agents)
