"""Prometheus collector that assembles a TeamCity snapshot on every scrape.

The collector is registered once on a prometheus_client registry. Each call
to ``collect`` walks the project tree and the agent list concurrently, with
every worker writing onto one shared QueueSink, and then groups the drained
samples into one gauge family per descriptor.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, Protocol

from prometheus_client.core import GaugeMetricFamily

from tcexporter.core.agents import AgentsAdapter, collect_agent_metrics
from tcexporter.core.config import DEFAULT_ROOT_PROJECT_ID
from tcexporter.core.errors import PaginationUnsupportedError
from tcexporter.core.metrics import (
    MetricDescriptor,
    MetricDescriptors,
    QueueSink,
    Sample,
    default_descriptors,
)
from tcexporter.core.projects import ProjectsAdapter, collect_project_metrics

logger = logging.getLogger(__name__)


class TeamCityAdapterLike(ProjectsAdapter, AgentsAdapter, Protocol):
    """Everything the collector needs from the TeamCity adapter."""


class TeamCityCollector:
    """Custom prometheus_client collector for TeamCity projects, builds and agents."""

    def __init__(
        self,
        adapter: TeamCityAdapterLike,
        *,
        root_project_id: str = DEFAULT_ROOT_PROJECT_ID,
        descriptors: MetricDescriptors | None = None,
        on_fatal: Callable[[BaseException], None] | None = None,
    ):
        """
        Create the collector.

        Args:
            adapter: TeamCity adapter shared by all collection threads.
            root_project_id: Project the tree walk starts from.
            descriptors: Descriptor set; the canonical set when omitted.
            on_fatal: Called with the error when a scrape hits an unsupported
                condition, before the error is re-raised.
        """
        self.adapter = adapter
        self.root_project_id = root_project_id
        self.descriptors = descriptors or default_descriptors()
        self.on_fatal = on_fatal

    def describe(self) -> Iterator[GaugeMetricFamily]:
        """Declare the fixed descriptor set without touching TeamCity."""
        for descriptor in self.descriptors.all():
            yield _family(descriptor)

    def collect_samples(self) -> list[Sample]:
        """
        Run one full collection cycle and return every published sample.

        Raises:
            PaginationUnsupportedError: If TeamCity reports a further page of
                builds or agents. ``on_fatal`` has been called by then.
        """
        logger.info("collecting TeamCity metrics")
        started = time.monotonic()
        sink = QueueSink()

        try:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="scrape") as pool:
                projects = pool.submit(
                    collect_project_metrics,
                    self.adapter,
                    self.descriptors,
                    sink,
                    self.root_project_id,
                )
                agents = pool.submit(
                    collect_agent_metrics, self.adapter, self.descriptors, sink
                )
                project_count = projects.result()
                agent_count = agents.result()
        except PaginationUnsupportedError as exc:
            logger.critical("%s", exc)
            if self.on_fatal is not None:
                self.on_fatal(exc)
            raise

        samples = sink.drain()
        logger.info(
            "collection finished",
            extra={
                "projects": project_count,
                "agents": agent_count,
                "samples": len(samples),
                "duration": round(time.monotonic() - started, 3),
            },
        )
        return samples

    def collect(self) -> Iterator[GaugeMetricFamily]:
        families = {d.name: _family(d) for d in self.descriptors.all()}
        for sample in self.collect_samples():
            families[sample.descriptor.name].add_metric(
                list(sample.label_values), sample.value
            )
        yield from families.values()


def _family(descriptor: MetricDescriptor) -> GaugeMetricFamily:
    return GaugeMetricFamily(
        descriptor.name, descriptor.help, labels=list(descriptor.labels)
    )
