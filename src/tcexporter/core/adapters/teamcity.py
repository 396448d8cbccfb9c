from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from typing import Any

import requests

from tcexporter.core.auth import sanitize_addr
from tcexporter.core.errors import TeamCityRequestError
from tcexporter.core.models import AgentListResult, BuildListResult, Project

logger = logging.getLogger(__name__)

PROJECT_FIELDS = "id,projects(count,project(id)),buildTypes(count)"
BUILD_FIELDS = "count,nextHref,build(id,buildTypeId,status,state,startDate,finishDate)"
AGENT_FIELDS = "count,nextHref,agent(id,name,authorized,connected,enabled,build(id))"


class TeamCityAdapter:
    """Adapter around the TeamCity REST API (projects, builds, agents)."""

    _DEFAULT_PAGE_SIZE = 10000
    _DEFAULT_TIMEOUT_SECONDS = 30.0

    def __init__(
        self,
        session: requests.Session,
        addr: str,
        *,
        page_size: int = _DEFAULT_PAGE_SIZE,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
        max_in_flight: int = 0,
    ):
        """
        Create an adapter for one TeamCity server.

        ``max_in_flight`` caps the number of concurrent outbound requests
        across all threads sharing this adapter; 0 leaves it unbounded.
        """
        self.session = session
        self.addr = sanitize_addr(addr) or ""
        self.page_size = page_size
        self.timeout = timeout
        self._slots = (
            threading.BoundedSemaphore(max_in_flight) if max_in_flight > 0 else None
        )

    def project_url(self, project_id: str) -> str:
        return f"{self.addr}/app/rest/projects/id:{project_id}?fields={PROJECT_FIELDS}"

    def builds_url(self, project_id: str) -> str:
        return (
            f"{self.addr}/app/rest/builds"
            f"?locator=count:{self.page_size},project:id:{project_id}"
            f"&fields={BUILD_FIELDS}"
        )

    def agents_url(self) -> str:
        return (
            f"{self.addr}/app/rest/agents"
            f"?locator=count:{self.page_size}&fields={AGENT_FIELDS}"
        )

    def _get_json(self, url: str) -> dict[str, Any] | None:
        """
        GET a TeamCity resource and decode its JSON body.

        Returns None on 404. Raises TeamCityRequestError for transport
        failures, other error statuses and undecodable bodies.
        """
        with self._slots or nullcontext():
            try:
                response = self.session.get(
                    url,
                    headers={"Accept": "application/json"},
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                raise TeamCityRequestError(
                    f"GET {url} failed: {exc}", url=url
                ) from exc

        if response.status_code == 404:
            logger.debug("resource not found: %s", url)
            return None
        if not 200 <= response.status_code < 300:
            raise TeamCityRequestError(
                f"GET {url} failed: {response.status_code} {response.text[:200]}",
                url=url,
                status=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise TeamCityRequestError(
                f"GET {url} returned invalid JSON", url=url, status=response.status_code
            ) from exc
        if not isinstance(payload, dict):
            raise TeamCityRequestError(
                f"GET {url} returned unexpected payload", url=url, status=response.status_code
            )
        return payload

    def get_project(self, project_id: str) -> Project | None:
        """Return the project with the given identifier, or None if it does not exist."""
        payload = self._get_json(self.project_url(project_id))
        if payload is None:
            return None
        try:
            return Project.from_json(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise TeamCityRequestError(
                f"Malformed project response for {project_id}: {exc}"
            ) from exc

    def list_builds(self, project_id: str) -> BuildListResult:
        """Return the first page of builds for a project (empty if not found)."""
        payload = self._get_json(self.builds_url(project_id))
        if payload is None:
            return BuildListResult()
        try:
            return BuildListResult.from_json(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise TeamCityRequestError(
                f"Malformed build list for {project_id}: {exc}"
            ) from exc

    def list_agents(self) -> AgentListResult:
        """Return the first page of agents (empty if not found)."""
        payload = self._get_json(self.agents_url())
        if payload is None:
            return AgentListResult()
        try:
            return AgentListResult.from_json(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise TeamCityRequestError(f"Malformed agent list: {exc}") from exc
