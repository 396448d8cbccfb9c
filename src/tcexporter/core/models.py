"""Core TeamCity domain models plus enum mapping.

This module defines the TeamCity data structures the collectors work with
(Project, Build, Agent and the list results) and the mapping of raw build
state/status strings onto ordinal values suitable for gauges. It is free of
HTTP and Prometheus concerns: the adapter builds these objects from response
bodies and the collectors turn them into samples.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Any, Mapping

from tcexporter.core.errors import TimestampError
from tcexporter.core.timestamps import parse_timestamp

logger = logging.getLogger(__name__)


class BuildState(IntEnum):
    """
    Lifecycle state of a TeamCity build.

    Values:
        UNKNOWN: The state string was missing or not recognized.
        QUEUED: The build is waiting for an agent.
        FINISHED: The build has completed.
        RUNNING: The build is executing on an agent.
        DELETED: The build was removed from the queue.
    """

    UNKNOWN = 0
    QUEUED = 1
    FINISHED = 2
    RUNNING = 3
    DELETED = 4


class BuildStatus(IntEnum):
    """
    Result status of a TeamCity build.

    Values:
        UNKNOWN: The status string was missing or not recognized.
        SUCCESS: The build succeeded.
        FAILURE: The build failed.
    """

    UNKNOWN = 0
    SUCCESS = 1
    FAILURE = 2


_BUILD_STATES = {
    "queued": BuildState.QUEUED,
    "finished": BuildState.FINISHED,
    "running": BuildState.RUNNING,
    "deleted": BuildState.DELETED,
}

_BUILD_STATUSES = {
    "SUCCESS": BuildStatus.SUCCESS,
    "FAILURE": BuildStatus.FAILURE,
}


def parse_build_state(value: str | None) -> BuildState:
    """Map a raw TeamCity state string onto BuildState (UNKNOWN if unrecognized)."""
    return _BUILD_STATES.get(value or "", BuildState.UNKNOWN)


def parse_build_status(value: str | None) -> BuildStatus:
    """Map a raw TeamCity status string onto BuildStatus (UNKNOWN if unrecognized)."""
    return _BUILD_STATUSES.get(value or "", BuildStatus.UNKNOWN)


def _decode_date(raw: Any, *, build_id: int, field: str) -> datetime | None:
    """Decode one build date, degrading a malformed value to None."""
    if not raw:
        return None
    try:
        return parse_timestamp(str(raw))
    except TimestampError as exc:
        logger.warning(
            "invalid build %s: %s", field, exc, extra={"build": build_id}
        )
        return None


@dataclass(frozen=True)
class Project:
    """
    Represents a TeamCity project node.

    Attributes:
        id: TeamCity project identifier (e.g. ``_Root``).
        child_project_count: Number of direct subprojects.
        child_project_ids: Identifiers of the direct subprojects, in server order.
        build_type_count: Number of build configurations in the project.
    """

    id: str
    child_project_count: int = 0
    child_project_ids: tuple[str, ...] = ()
    build_type_count: int = 0

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> Project:
        """Build a Project from a ``/app/rest/projects`` response body."""
        children = payload.get("projects") or {}
        items = children.get("project") or []
        child_ids = tuple(str(p["id"]) for p in items if p.get("id"))
        build_types = payload.get("buildTypes") or {}
        return cls(
            id=str(payload["id"]),
            child_project_count=int(children.get("count", len(child_ids))),
            child_project_ids=child_ids,
            build_type_count=int(build_types.get("count", 0)),
        )


@dataclass(frozen=True)
class Build:
    """
    Represents a single execution of a TeamCity build type.

    Attributes:
        id: Numeric build identifier.
        build_type_id: Identifier of the owning build configuration.
        status: Raw status string as reported by TeamCity.
        state: Raw state string as reported by TeamCity.
        start_date: Start instant, or None if not started or unparsable.
        finish_date: Finish instant, or None if not finished or unparsable.
    """

    id: int
    build_type_id: str
    status: str = ""
    state: str = ""
    start_date: datetime | None = None
    finish_date: datetime | None = None

    @property
    def build_state(self) -> BuildState:
        return parse_build_state(self.state)

    @property
    def build_status(self) -> BuildStatus:
        return parse_build_status(self.status)

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> Build:
        """Build a Build from one entry of a build list response."""
        build_id = int(payload.get("id", 0))
        return cls(
            id=build_id,
            build_type_id=str(payload.get("buildTypeId", "")),
            status=str(payload.get("status", "")),
            state=str(payload.get("state", "")),
            start_date=_decode_date(
                payload.get("startDate"), build_id=build_id, field="startDate"
            ),
            finish_date=_decode_date(
                payload.get("finishDate"), build_id=build_id, field="finishDate"
            ),
        )


@dataclass(frozen=True)
class BuildListResult:
    """One page of builds returned by ``/app/rest/builds``."""

    count: int = 0
    next_href: str | None = None
    builds: tuple[Build, ...] = ()

    @property
    def has_next_page(self) -> bool:
        return bool(self.next_href)

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> BuildListResult:
        builds = tuple(Build.from_json(b) for b in payload.get("build") or [])
        return cls(
            count=int(payload.get("count", len(builds))),
            next_href=payload.get("nextHref") or None,
            builds=builds,
        )


@dataclass(frozen=True)
class Agent:
    """
    Represents a TeamCity build agent.

    Attributes:
        id: Numeric agent identifier.
        name: Agent name.
        authorized: Whether the agent is authorized on the server.
        connected: Whether the agent is currently connected.
        enabled: Whether the agent is enabled to run builds.
        current_build_id: Identifier of the running build, 0 when idle.
    """

    id: int
    name: str
    authorized: bool = False
    connected: bool = False
    enabled: bool = False
    current_build_id: int = 0

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> Agent:
        build = payload.get("build") or {}
        return cls(
            id=int(payload.get("id", 0)),
            name=str(payload.get("name", "")),
            authorized=bool(payload.get("authorized", False)),
            connected=bool(payload.get("connected", False)),
            enabled=bool(payload.get("enabled", False)),
            current_build_id=int(build.get("id", 0) or 0),
        )


@dataclass(frozen=True)
class AgentListResult:
    """One page of agents returned by ``/app/rest/agents``."""

    count: int = 0
    next_href: str | None = None
    agents: tuple[Agent, ...] = ()

    @property
    def has_next_page(self) -> bool:
        return bool(self.next_href)

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> AgentListResult:
        agents = tuple(Agent.from_json(a) for a in payload.get("agent") or [])
        return cls(
            count=int(payload.get("count", len(agents))),
            next_href=payload.get("nextHref") or None,
            agents=agents,
        )
