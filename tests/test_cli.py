"""CLI command tests."""

import httpx
import pytest
import respx
from typer.testing import CliRunner

from obsidian_vikunja_sync.cli import app
from obsidian_vikunja_sync.cli_commands import shared
from tests.fixtures import task_note, write_note

runner = CliRunner()


@pytest.fixture(autouse=True)
def _fresh_cli_state(monkeypatch):
    monkeypatch.setattr(shared, "_config", None)
    monkeypatch.setattr(shared, "_logger", None)
    monkeypatch.setattr(shared, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def config_file(tmp_path):
    vault = tmp_path / "vault"
    write_note(vault, "TaskNotes/Tasks/Linked.md", task_note("Linked", vikunja_id="7"))
    write_note(vault, "TaskNotes/Tasks/New.md", task_note("New"))
    write_note(vault, "TaskNotes/Tasks/Private.md", task_note("Private", vikunja_ignore="true"))
    path = tmp_path / "config.yaml"
    path.write_text(
        f"vault_path: {vault}\n"
        "vikunja_enabled: true\n"
        "vikunja_api_url: http://vikunja.test/api/v1\n"
        "vikunja_api_token: tk\n"
        "default_project_id: 3\n",
        encoding="utf-8",
    )
    return path


class TestStatus:
    def test_status_counts_notes(self, config_file) -> None:
        result = runner.invoke(app, ["status", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "linked" in result.output
        assert "unlinked" in result.output
        assert "ignored" in result.output
        assert "default project 3" in result.output


class TestCheck:
    @respx.mock
    def test_check_passes(self, config_file) -> None:
        respx.get("http://vikunja.test/api/v1/user").mock(
            return_value=httpx.Response(200, json={"id": 1})
        )

        result = runner.invoke(app, ["check", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "3 task notes" in result.output

    @respx.mock
    def test_check_fails_without_connection(self, config_file) -> None:
        respx.get("http://vikunja.test/api/v1/user").mock(
            return_value=httpx.Response(401, json={"message": "bad token"})
        )

        result = runner.invoke(app, ["check", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "FAIL" in result.output


class TestPull:
    @respx.mock
    def test_pull_prints_summary(self, config_file) -> None:
        respx.get(host="vikunja.test", path="/api/v1/projects/3/tasks").mock(
            return_value=httpx.Response(200, json=[{"id": 7, "title": "Linked"}])
        )

        result = runner.invoke(app, ["pull", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Pull summary" in result.output
        assert "fetched" in result.output

    def test_pull_requires_enabled_sync(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(f"vault_path: {tmp_path}\n", encoding="utf-8")

        result = runner.invoke(app, ["pull", "--config", str(path)])

        assert result.exit_code == 1
        assert "disabled" in result.output
