import logging
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

from tcexporter.cli import cli as cli_module
from tcexporter.cli.commands import exporter as exporter_module
from tcexporter.cli.common.context import ExporterAppContext
from tcexporter.core.collector import TeamCityCollector
from tcexporter.core.errors import PaginationUnsupportedError
from tcexporter.core.models import AgentListResult, BuildListResult, Project

runner = CliRunner()

ENV = {"TEAMCITY_ADDR": "https://tc.example.com", "TEAMCITY_TOKEN": "tok"}


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class _Adapter:
    def get_project(self, project_id):
        return Project(id=project_id, build_type_count=4)

    def list_builds(self, project_id):
        return BuildListResult()

    def list_agents(self):
        return AgentListResult()


@pytest.fixture
def contexts(monkeypatch):
    built: list[ExporterAppContext] = []

    def _build(config):
        collector = TeamCityCollector(_Adapter(), root_project_id=config.root_project_id)
        appctx = ExporterAppContext(
            config=config, session=None, adapter=None, collector=collector
        )
        collector.on_fatal = appctx.report_fatal
        built.append(appctx)
        return appctx

    monkeypatch.setattr(cli_module, "build_exporter_context", _build)
    return built


def test_missing_address_exits_with_config_error(contexts):
    result = runner.invoke(cli_module.app, ["scrape"], env={"TEAMCITY_TOKEN": "tok"})

    assert result.exit_code == 2
    assert "address is required" in result.output
    assert contexts == []


def test_scrape_prints_exposition_format(contexts):
    result = runner.invoke(
        cli_module.app,
        ["--root-project-id", "Only", "--log-format", "text", "scrape"],
        env=ENV,
    )

    assert result.exit_code == 0, result.output
    assert 'teamcity_project_build_types{project_id="Only"} 4.0' in result.output
    assert contexts[0].config.root_project_id == "Only"


def test_scrape_table_renders_samples(contexts):
    result = runner.invoke(cli_module.app, ["scrape", "--table"], env=ENV)

    assert result.exit_code == 0, result.output
    assert "teamcity_projects" in result.output
    assert "project_id=_Root" in result.output


def test_serve_exits_non_zero_after_fatal_error(contexts, monkeypatch):
    stopped = []

    def _serve_metrics(registry, listen, port, path):
        contexts[0].report_fatal(PaginationUnsupportedError("builds of X", "/next"))
        return SimpleNamespace(shutdown=lambda: stopped.append(True)), None

    monkeypatch.setattr(exporter_module, "serve_metrics", _serve_metrics)

    result = runner.invoke(cli_module.app, ["serve", "--port", "9123"], env=ENV)

    assert result.exit_code == 1
    assert stopped == [True]
    assert "multipage requests are not supported" in result.output


def test_serve_rejects_invalid_path(contexts):
    result = runner.invoke(cli_module.app, ["serve", "--path", "metrics"], env=ENV)

    assert result.exit_code == 2
    assert "must start with" in result.output
