"""Build metrics collection for a single TeamCity project.

Fetches one page of builds for a project and publishes four gauges per build
(start time, finish time, status, state). Only single-page responses are
supported: when TeamCity reports a further page the fetched page is still
published, then PaginationUnsupportedError is raised.
"""

import logging
from typing import Protocol

from tcexporter.core.errors import PaginationUnsupportedError
from tcexporter.core.metrics import MetricDescriptors, MetricSink
from tcexporter.core.models import BuildListResult
from tcexporter.core.timestamps import to_gauge

logger = logging.getLogger(__name__)


class BuildsAdapter(Protocol):
    """Interface for listing the builds of a project."""

    def list_builds(self, project_id: str) -> BuildListResult:
        """Return the first page of builds for a project."""
        ...


def collect_build_metrics(
    adapter: BuildsAdapter,
    descriptors: MetricDescriptors,
    sink: MetricSink,
    project_id: str,
) -> int:
    """
    Publish build gauges for one project.

    Args:
        adapter: TeamCity adapter used to list builds.
        descriptors: Descriptor set the samples are emitted against.
        sink: Channel receiving the samples.
        project_id: Identifier of the project whose builds are collected.

    Returns:
        The number of builds published.

    Raises:
        TeamCityRequestError: If the build list could not be fetched.
        PaginationUnsupportedError: If TeamCity reports a further page.
    """
    result = adapter.list_builds(project_id)
    logger.info("found builds", extra={"project": project_id, "count": result.count})

    for build in result.builds:
        labels = (project_id, build.build_type_id, str(build.id))

        sink.emit(descriptors.build_start_time, to_gauge(build.start_date), labels)
        sink.emit(descriptors.build_finish_time, to_gauge(build.finish_date), labels)
        sink.emit(descriptors.build_status, float(build.build_status), labels)
        sink.emit(descriptors.build_state, float(build.build_state), labels)

    if result.has_next_page:
        raise PaginationUnsupportedError(f"builds of {project_id}", result.next_href or "")

    return len(result.builds)
