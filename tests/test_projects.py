import threading

import pytest

from conftest import samples_by_name
from tcexporter.core.adapters.teamcity import TeamCityAdapter
from tcexporter.core.errors import PaginationUnsupportedError, TeamCityRequestError
from tcexporter.core.models import Build, BuildListResult, Project
from tcexporter.core.projects import collect_project_metrics


class _TreeAdapter:
    """Stub serving a fixed project tree; values may be exceptions to raise."""

    def __init__(self, projects: dict, builds: dict | None = None):
        self.projects = projects
        self.builds = builds or {}
        self.lock = threading.Lock()
        self.project_calls: list[str] = []

    def get_project(self, project_id: str) -> Project | None:
        with self.lock:
            self.project_calls.append(project_id)
        value = self.projects.get(project_id)
        if isinstance(value, Exception):
            raise value
        return value

    def list_builds(self, project_id: str) -> BuildListResult:
        value = self.builds.get(project_id, BuildListResult())
        if isinstance(value, Exception):
            raise value
        return value


def _project(project_id: str, children=(), build_types: int = 0) -> Project:
    return Project(
        id=project_id,
        child_project_count=len(children),
        child_project_ids=tuple(children),
        build_type_count=build_types,
    )


def _binary_tree() -> dict[str, Project]:
    # _Root -> A, B; A -> A1, A2; B -> B1, B2
    return {
        "_Root": _project("_Root", ["A", "B"]),
        "A": _project("A", ["A1", "A2"], build_types=1),
        "B": _project("B", ["B1", "B2"], build_types=2),
        "A1": _project("A1"),
        "A2": _project("A2"),
        "B1": _project("B1"),
        "B2": _project("B2", build_types=3),
    }


def test_leaf_project_emits_two_zero_gauges_and_no_builds(descriptors, sink):
    adapter = _TreeAdapter({"Leaf": _project("Leaf")})

    collected = collect_project_metrics(adapter, descriptors, sink, "Leaf")

    samples = sink.drain()
    assert collected == 1
    assert [(s.descriptor.name, s.value, s.label_values) for s in samples] == [
        ("teamcity_projects", 0.0, ("Leaf",)),
        ("teamcity_project_build_types", 0.0, ("Leaf",)),
    ]
    assert adapter.project_calls == ["Leaf"]


def test_walks_every_node_of_a_depth_three_tree(descriptors, sink):
    adapter = _TreeAdapter(_binary_tree())

    collected = collect_project_metrics(adapter, descriptors, sink, "_Root")

    by_name = samples_by_name(sink.drain())
    projects = {s.label_values[0]: s.value for s in by_name["teamcity_projects"]}
    build_types = {
        s.label_values[0]: s.value for s in by_name["teamcity_project_build_types"]
    }
    assert collected == 7
    assert projects == {
        "_Root": 2.0, "A": 2.0, "B": 2.0, "A1": 0.0, "A2": 0.0, "B1": 0.0, "B2": 0.0
    }
    assert build_types["B2"] == 3.0
    assert sorted(adapter.project_calls) == sorted(_binary_tree())
    assert not [t for t in threading.enumerate() if t.name.startswith("project-")]


def test_failed_subtree_is_skipped_and_siblings_continue(descriptors, sink, caplog):
    tree = _binary_tree()
    tree["A"] = TeamCityRequestError("GET A failed: 500")
    adapter = _TreeAdapter(tree)

    collected = collect_project_metrics(adapter, descriptors, sink, "_Root")

    seen = {s.label_values[0] for s in sink.drain()}
    assert collected == 4
    assert seen == {"_Root", "B", "B1", "B2"}
    assert "A1" not in adapter.project_calls
    assert "project lookup failed" in caplog.text


def test_missing_project_contributes_nothing(descriptors, sink):
    adapter = _TreeAdapter({"_Root": _project("_Root", ["Gone"])})

    assert collect_project_metrics(adapter, descriptors, sink, "_Root") == 1
    assert {s.label_values[0] for s in sink.drain()} == {"_Root"}


def test_build_errors_do_not_stop_the_walk(descriptors, sink):
    adapter = _TreeAdapter(
        _binary_tree(), builds={"_Root": TeamCityRequestError("builds down")}
    )

    assert collect_project_metrics(adapter, descriptors, sink, "_Root") == 7


def test_builds_are_labeled_with_project(descriptors, sink):
    adapter = _TreeAdapter(
        {"P": _project("P", build_types=1)},
        builds={
            "P": BuildListResult(
                count=1, builds=(Build(id=77, build_type_id="P_Ci", state="queued"),)
            )
        },
    )

    collect_project_metrics(adapter, descriptors, sink, "P")

    by_name = samples_by_name(sink.drain())
    assert by_name["teamcity_build_state"][0].label_values == ("P", "P_Ci", "77")
    assert by_name["teamcity_build_state"][0].value == 1.0


def test_parent_samples_precede_children(descriptors, sink):
    adapter = _TreeAdapter(_binary_tree())

    collect_project_metrics(adapter, descriptors, sink, "_Root")

    order = [
        s.label_values[0]
        for s in sink.drain()
        if s.descriptor.name == "teamcity_projects"
    ]
    assert order[0] == "_Root"
    assert order.index("A") < order.index("A1")
    assert order.index("B") < order.index("B2")


def test_pagination_error_propagates_after_siblings_finish(descriptors, sink):
    tree = _binary_tree()
    adapter = _TreeAdapter(
        tree,
        builds={
            "A1": BuildListResult(
                count=1,
                next_href="/app/rest/builds?start=1",
                builds=(Build(id=1, build_type_id="A1_Ci"),),
            )
        },
    )

    with pytest.raises(PaginationUnsupportedError):
        collect_project_metrics(adapter, descriptors, sink, "_Root")

    # every sibling branch ran to completion before the error surfaced
    assert sorted(adapter.project_calls) == sorted(tree)


class _Response:
    def __init__(self, status_code: int, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.text = ""

    def json(self):
        return self._payload


class _RoutingSession:
    """Fake requests session answering by URL substring; unknown URLs are 404."""

    def __init__(self, routes: dict):
        self.routes = routes

    def get(self, url, headers=None, timeout=None):
        for fragment, payload in self.routes.items():
            if fragment in url:
                return _Response(200, payload)
        return _Response(404)


def test_build_list_not_found_leaves_siblings_untouched(descriptors, sink):
    session = _RoutingSession(
        {
            "/projects/id:_Root?": {
                "id": "_Root",
                "projects": {"count": 2, "project": [{"id": "P"}, {"id": "Q"}]},
            },
            "/projects/id:P?": {"id": "P", "buildTypes": {"count": 1}},
            "/projects/id:Q?": {"id": "Q", "buildTypes": {"count": 1}},
            "project:id:Q&": {
                "count": 1,
                "build": [
                    {
                        "id": 5,
                        "buildTypeId": "Q_Ci",
                        "status": "SUCCESS",
                        "state": "finished",
                        "startDate": "20240131T142501+0100",
                        "finishDate": "20240131T143001+0100",
                    }
                ],
            },
        }
    )
    adapter = TeamCityAdapter(session, "https://tc.example.com")

    collected = collect_project_metrics(adapter, descriptors, sink, "_Root")

    by_name = samples_by_name(sink.drain())
    assert collected == 3
    build_samples = [
        s
        for name in (
            "teamcity_build_start_time",
            "teamcity_build_finish_time",
            "teamcity_build_status",
            "teamcity_build_state",
        )
        for s in by_name[name]
    ]
    assert {s.label_values for s in build_samples} == {("Q", "Q_Ci", "5")}
    assert len(build_samples) == 4
    assert {s.label_values[0] for s in by_name["teamcity_projects"]} == {
        "_Root",
        "P",
        "Q",
    }
