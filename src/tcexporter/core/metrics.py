"""Metric descriptors and the sample channel shared by the collectors.

The descriptor set is built once at startup and handed to every collector by
reference. Collectors never talk to prometheus_client directly: they emit
``Sample`` values onto a ``MetricSink``, and the snapshot assembler turns the
drained samples into metric families.
"""

from __future__ import annotations

import queue
from dataclasses import dataclass
from typing import NamedTuple, Protocol

PROJECT_LABELS = ("project_id",)
BUILD_LABELS = ("project_id", "build_type_id", "build_id")
AGENT_LABELS = ("agent_id", "agent_name")


@dataclass(frozen=True)
class MetricDescriptor:
    """Name, help text and ordered label names of one gauge."""

    name: str
    help: str
    labels: tuple[str, ...]


@dataclass(frozen=True)
class MetricDescriptors:
    """The fixed set of gauges exposed by the exporter."""

    projects: MetricDescriptor
    build_types: MetricDescriptor

    build_start_time: MetricDescriptor
    build_finish_time: MetricDescriptor
    build_state: MetricDescriptor
    build_status: MetricDescriptor

    agent_authorized: MetricDescriptor
    agent_connected: MetricDescriptor
    agent_enabled: MetricDescriptor
    agent_current_build_id: MetricDescriptor

    def all(self) -> tuple[MetricDescriptor, ...]:
        """Return every descriptor in declaration order."""
        return (
            self.projects,
            self.build_types,
            self.build_start_time,
            self.build_finish_time,
            self.build_state,
            self.build_status,
            self.agent_authorized,
            self.agent_connected,
            self.agent_enabled,
            self.agent_current_build_id,
        )


def default_descriptors() -> MetricDescriptors:
    """Return the canonical TeamCity descriptor set."""
    return MetricDescriptors(
        projects=MetricDescriptor(
            "teamcity_projects",
            "The total number of subprojects for a TeamCity project.",
            PROJECT_LABELS,
        ),
        build_types=MetricDescriptor(
            "teamcity_project_build_types",
            "The total number of build types for a TeamCity project.",
            PROJECT_LABELS,
        ),
        build_start_time=MetricDescriptor(
            "teamcity_build_start_time",
            "The start time of a TeamCity build job.",
            BUILD_LABELS,
        ),
        build_finish_time=MetricDescriptor(
            "teamcity_build_finish_time",
            "The finish time of a TeamCity build job.",
            BUILD_LABELS,
        ),
        build_state=MetricDescriptor(
            "teamcity_build_state",
            "The state of a TeamCity build job.",
            BUILD_LABELS,
        ),
        build_status=MetricDescriptor(
            "teamcity_build_status",
            "The status of a TeamCity build job.",
            BUILD_LABELS,
        ),
        agent_authorized=MetricDescriptor(
            "teamcity_agent_authorized",
            "The authorized status of a TeamCity agent.",
            AGENT_LABELS,
        ),
        agent_connected=MetricDescriptor(
            "teamcity_agent_connected",
            "The connected status of a TeamCity agent.",
            AGENT_LABELS,
        ),
        agent_enabled=MetricDescriptor(
            "teamcity_agent_enabled",
            "The enabled status of a TeamCity agent.",
            AGENT_LABELS,
        ),
        agent_current_build_id=MetricDescriptor(
            "teamcity_agent_current_build_id",
            "The build ID of the current build of a TeamCity agent.",
            AGENT_LABELS,
        ),
    )


class Sample(NamedTuple):
    """One gauge value with its label values."""

    descriptor: MetricDescriptor
    value: float
    label_values: tuple[str, ...]


class MetricSink(Protocol):
    """Interface for the channel collectors write samples to."""

    def emit(
        self, descriptor: MetricDescriptor, value: float, label_values: tuple[str, ...]
    ) -> None:
        """Publish one sample."""
        ...


class QueueSink:
    """Thread-safe multi-producer sample channel backed by ``queue.Queue``."""

    def __init__(self) -> None:
        self._queue: queue.Queue[Sample] = queue.Queue()

    def emit(
        self, descriptor: MetricDescriptor, value: float, label_values: tuple[str, ...]
    ) -> None:
        if len(label_values) != len(descriptor.labels):
            raise ValueError(
                f"{descriptor.name} expects {len(descriptor.labels)} label values, "
                f"got {len(label_values)}"
            )
        self._queue.put(Sample(descriptor, float(value), tuple(label_values)))

    def drain(self) -> list[Sample]:
        """Remove and return every sample published so far."""
        samples: list[Sample] = []
        while True:
            try:
                samples.append(self._queue.get_nowait())
            except queue.Empty:
                return samples
