"""Recursive TeamCity project-tree collection.

Starting from a root project, each step fetches one project, publishes its
structural gauges, collects the project's builds and then walks every direct
subproject concurrently. Each step owns a thread pool for its children and
leaves it only after all of them have finished, so no task outlives its
parent. The project hierarchy is assumed to be acyclic.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Protocol

from tcexporter.core.builds import collect_build_metrics
from tcexporter.core.errors import TeamCityRequestError
from tcexporter.core.metrics import MetricDescriptors, MetricSink
from tcexporter.core.models import BuildListResult, Project

logger = logging.getLogger(__name__)


class ProjectsAdapter(Protocol):
    """Interface for project lookups and build listing used by the traversal."""

    def get_project(self, project_id: str) -> Project | None:
        """Return a project, or None if it does not exist."""
        ...

    def list_builds(self, project_id: str) -> BuildListResult:
        """Return the first page of builds for a project."""
        ...


def collect_project_metrics(
    adapter: ProjectsAdapter,
    descriptors: MetricDescriptors,
    sink: MetricSink,
    project_id: str,
) -> int:
    """
    Publish metrics for a project and, recursively, all of its subprojects.

    A project that cannot be fetched is logged and skipped together with its
    subtree; siblings are unaffected. Build collection failures are logged and
    do not stop the walk into subprojects.

    Args:
        adapter: TeamCity adapter used for project and build lookups.
        descriptors: Descriptor set the samples are emitted against.
        sink: Channel receiving the samples.
        project_id: Identifier of the project to start from.

    Returns:
        The number of projects whose structural gauges were published.

    Raises:
        PaginationUnsupportedError: If any project in the subtree reports a
            further page of builds. Raised after all sibling tasks finished.
    """
    logger.info("collecting project", extra={"project": project_id})
    try:
        project = adapter.get_project(project_id)
    except TeamCityRequestError as exc:
        logger.error("project lookup failed: %s", exc, extra={"project": project_id})
        return 0

    if project is None:
        logger.warning("project not found", extra={"project": project_id})
        return 0

    logger.debug(
        "setting project count metric",
        extra={"project": project.id, "value": project.child_project_count},
    )
    sink.emit(descriptors.projects, project.child_project_count, (project.id,))

    logger.debug(
        "setting build type count metric",
        extra={"project": project.id, "value": project.build_type_count},
    )
    sink.emit(descriptors.build_types, project.build_type_count, (project.id,))

    try:
        collect_build_metrics(adapter, descriptors, sink, project.id)
    except TeamCityRequestError as exc:
        logger.error("build collection failed: %s", exc, extra={"project": project.id})

    children = project.child_project_ids
    if not children:
        return 1

    collected = 1
    with ThreadPoolExecutor(
        max_workers=len(children), thread_name_prefix=f"project-{project.id}"
    ) as pool:
        futures = [
            pool.submit(collect_project_metrics, adapter, descriptors, sink, child)
            for child in children
        ]

        logger.debug("waiting for project collection", extra={"project": project.id})
        for f in as_completed(futures):
            collected += f.result()

    logger.debug("project collection finished", extra={"project": project.id})
    return collected
