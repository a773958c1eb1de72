"""Tests for the task commands."""

from agentsquad.cli.main import cli


def spawn(invoke_json, name, role, task=None, depends_on=()):
    args = ['agent', 'run', '--provider', 'generic', '--name', name, '--role', role]
    if task:
        args += ['--task', task]
    for task_id in depends_on:
        args += ['--depends-on', task_id]
    return invoke_json(cli, args)["agent"]


class TestTaskAssignAndGet:
    def test_assign_then_get(self, project_dir, invoke_json):
        spawn(invoke_json, "max", "developer")

        task = invoke_json(cli, ['task', 'assign', '--agent', 'max', '--task', 'Write docs',
                                 '--priority', 'high'])["task"]

        assert task["status"] == "ready"
        assert task["task_type"] == "implementation"
        assert task["priority"] == "high"

        context = invoke_json(cli, ['task', 'get', '--agent', 'max', '--no-wait'])
        assert context["agent"]["id"] == "agent-max-developer"
        assert context["task"]["id"] == task["id"]

    def test_get_uses_agent_environment(self, cli_runner, project_dir, invoke_json):
        agent = spawn(invoke_json, "max", "developer", task="Build it")

        result = cli_runner.invoke(cli, ['task', 'get'], env={"AGENTSQUAD_AGENT_ID": agent["id"]})

        assert result.exit_code == 0
        assert "Task: " in result.output
        assert "Build it" in result.output

    def test_get_without_identity(self, cli_runner, project_dir):
        result = cli_runner.invoke(cli, ['task', 'get'])

        assert result.exit_code == 1
        assert "Error [AGENT_ID_REQUIRED]" in result.output

    def test_get_agent_without_task(self, cli_runner, project_dir, invoke_json):
        spawn(invoke_json, "max", "developer")

        result = cli_runner.invoke(cli, ['task', 'get', '--agent', 'max'])

        assert result.exit_code == 0
        assert "has no active task" in result.output


class TestTaskDependencies:
    def test_validator_waits_then_unblocks_on_review(self, project_dir, invoke_json):
        dev = spawn(invoke_json, "max", "developer", task="Implement login")
        tester = spawn(invoke_json, "qa", "tester", task="Test login", depends_on=[dev["current_task_id"]])

        waiting = invoke_json(cli, ['task', 'get', '--agent', 'qa', '--no-wait'])["task"]
        assert waiting["status"] == "waiting"
        assert waiting["blocking_tasks"][0]["depends_on_task_id"] == dev["current_task_id"]

        invoke_json(cli, ['task', 'update-status', dev["current_task_id"], 'in_review', '--agent', 'max'])

        ready = invoke_json(cli, ['task', 'get', '--agent', 'qa', '--no-wait'])["task"]
        assert ready["id"] == tester["current_task_id"]
        assert ready["status"] == "ready"

    def test_list_filters(self, project_dir, invoke_json):
        dev = spawn(invoke_json, "max", "developer", task="Implement login")
        spawn(invoke_json, "qa", "tester", task="Test login", depends_on=[dev["current_task_id"]])

        assert len(invoke_json(cli, ['task', 'list'])["tasks"]) == 2
        waiting = invoke_json(cli, ['task', 'list', '--status', 'waiting'])["tasks"]
        assert [t["agent_id"] for t in waiting] == ["agent-qa-tester"]
        mine = invoke_json(cli, ['task', 'list', '--agent', 'max'])["tasks"]
        assert [t["id"] for t in mine] == [dev["current_task_id"]]


class TestNotifyDone:
    def test_finalizes_without_validators(self, project_dir, invoke_json):
        dev = spawn(invoke_json, "max", "developer", task="Implement login")

        data = invoke_json(cli, ['task', 'notify-done', dev["current_task_id"], '--agent', 'max',
                                 '--result-summary', 'Login works'])

        assert data["outcome"] == "finalized"
        assert data["task"]["status"] == "done"
        assert data["task"]["result_summary"] == "Login works"

    def test_current_task_is_used_by_default(self, cli_runner, project_dir, invoke_json):
        spawn(invoke_json, "max", "developer", task="Implement login")

        result = cli_runner.invoke(cli, ['task', 'notify-done', '--agent', 'max'])

        assert result.exit_code == 0
        assert "finalized" in result.output

    def test_changes_requested_exits_2(self, cli_runner, project_dir, invoke_json):
        dev = spawn(invoke_json, "max", "developer", task="Implement login")
        tester = spawn(invoke_json, "qa", "tester", task="Test login", depends_on=[dev["current_task_id"]])

        invoke_json(cli, ['task', 'update-status', dev["current_task_id"], 'in_review', '--agent', 'max'])
        invoke_json(cli, ['task', 'update-status', tester["current_task_id"], 'blocked',
                          '--note', 'tests fail', '--agent', 'qa'])

        result = cli_runner.invoke(cli, ['task', 'notify-done', dev["current_task_id"], '--agent', 'max'])

        assert result.exit_code == 2
        assert "Changes requested" in result.output
        assert "tests fail" in result.output

        task = invoke_json(cli, ['task', 'get', '--agent', 'max', '--no-wait'])["task"]
        assert task["status"] == "in_progress"
        assert task["blocking_reason"] == "tests fail"

    def test_agent_without_task(self, cli_runner, project_dir, invoke_json):
        spawn(invoke_json, "max", "developer")

        result = cli_runner.invoke(cli, ['task', 'notify-done', '--agent', 'max'])

        assert result.exit_code == 1
        assert "has no active task" in result.output


class TestStatusAndHistory:
    def test_terminal_task_cannot_move(self, cli_runner, project_dir, invoke_json):
        dev = spawn(invoke_json, "max", "developer", task="Implement login")
        invoke_json(cli, ['task', 'update-status', dev["current_task_id"], 'done'])

        result = cli_runner.invoke(cli, ['task', 'update-status', dev["current_task_id"], 'ready'])

        assert result.exit_code == 1
        assert "Error [INVALID_STATUS_TRANSITION]" in result.output

    def test_unknown_task(self, cli_runner, project_dir):
        result = cli_runner.invoke(cli, ['task', 'history', 'task-missing'])

        assert result.exit_code == 1
        assert "Error [TASK_NOT_FOUND]" in result.output

    def test_history(self, cli_runner, project_dir, invoke_json):
        dev = spawn(invoke_json, "max", "developer", task="Implement login")
        invoke_json(cli, ['task', 'update-status', dev["current_task_id"], 'in_progress', '--note', 'starting'])

        history = invoke_json(cli, ['task', 'history', dev["current_task_id"]])["history"]

        assert [(h["from_status"], h["to_status"]) for h in history] == [
            (None, "todo"),
            ("todo", "ready"),
            ("ready", "in_progress"),
        ]
        assert history[-1]["note"] == "starting"

        result = cli_runner.invoke(cli, ['task', 'history'])
        assert result.exit_code == 0
        assert "in_progress" in result.output
