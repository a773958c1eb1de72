"""Tests for CLI helper functions."""

import pytest

from agentsquad.cli.helpers import (
    get_project_context,
    handle_errors,
    load_project,
    print_table,
    to_jsonable,
    truncate,
)
from agentsquad.core.context import CallerContext
from agentsquad.models.task import TaskStatus
from agentsquad.services.exceptions import ConfigNotFoundError, WaitTimeoutError


class TestGetProjectContext:
    """Test the get_project_context helper function."""

    def test_returns_cwd_and_workspace(self, project_root, monkeypatch):
        monkeypatch.chdir(project_root)

        root, workspace_dir = get_project_context()

        assert root == project_root
        assert workspace_dir == project_root / ".agentsquad"


class TestLoadProject:
    def test_wires_services(self, initialized_project):
        project = load_project(initialized_project)

        assert project.store.project_root == initialized_project
        assert project.agents.tasks is project.tasks
        assert project.messages.agents is project.agents
        assert project.tasks.poll_interval_ms == 1500

    def test_missing_config(self, project_root):
        with pytest.raises(ConfigNotFoundError):
            load_project(project_root)

    def test_session_resolution(self, initialized_project):
        project = load_project(initialized_project)
        caller = CallerContext(agent_id="a1", session_id="from-env")

        assert project.session_id("explicit", caller) == "explicit"
        assert project.session_id(None, caller) == "from-env"
        assert project.session_id() == "default"


class TestHandleErrors:
    def test_prints_code_and_exits(self, capsys):
        @handle_errors
        def command():
            raise WaitTimeoutError("Timed out waiting for task-1 to be finalized.", exit_code=4)

        with pytest.raises(SystemExit) as exc_info:
            command()

        assert exc_info.value.code == 4
        assert "Error [WAIT_TIMEOUT]: Timed out waiting for task-1" in capsys.readouterr().err

    def test_passes_through_results(self):
        @handle_errors
        def command():
            return "ok"

        assert command() == "ok"


class TestFormatting:
    def test_truncate(self):
        assert truncate("short") == "short"
        assert truncate("first line\nsecond") == "first line"
        assert truncate("x" * 60, max_length=10) == "xxxxxxx..."
        assert truncate(None) == ""

    def test_to_jsonable(self):
        value = to_jsonable({"status": TaskStatus.DONE, "items": (1, 2)})

        assert value == {"status": TaskStatus.DONE, "items": [1, 2]}

    def test_print_table(self, capsys):
        print_table(["ID", "STATUS"], [["task-1", "done"]])

        output = capsys.readouterr().out
        assert "ID" in output
        assert "task-1" in output
