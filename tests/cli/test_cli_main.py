"""Tests for the top-level command group and init."""

from agentsquad import __version__
from agentsquad.cli.main import cli


class TestCli:
    def test_version(self, cli_runner):
        result = cli_runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, cli_runner):
        result = cli_runner.invoke(cli, ['--help'])

        assert result.exit_code == 0
        for command in ("init", "run", "provider", "agent", "task", "message", "artifact", "events", "logs"):
            assert command in result.output

    def test_uninitialized_project(self, cli_runner, project_root, monkeypatch):
        monkeypatch.chdir(project_root)

        result = cli_runner.invoke(cli, ['agent', 'list'])

        assert result.exit_code == 1
        assert "Error [CONFIG_NOT_FOUND]" in result.output


class TestInit:
    def test_creates_config_and_session(self, cli_runner, project_root, monkeypatch):
        monkeypatch.chdir(project_root)

        result = cli_runner.invoke(cli, ['init'])

        assert result.exit_code == 0
        assert "Agentsquad workspace initialised" in result.output
        assert (project_root / "agentsquad.config.json").exists()
        session_dir = project_root / ".agentsquad" / "sessions" / "default"
        assert (session_dir / "tasks.jsonl").exists()
        assert (session_dir / "events.jsonl").exists()

    def test_keeps_existing_config(self, cli_runner, project_dir, invoke_json):
        data = invoke_json(cli, ['init'])

        assert data["status"] == "ok"
        assert data["config_created"] is False

        result = cli_runner.invoke(cli, ['init'])
        assert "Using existing agentsquad.config.json" in result.output

    def test_force_rewrites_defaults(self, project_dir, invoke_json):
        data = invoke_json(cli, ['init', '--force'])

        assert data["config_created"] is True
        assert "sleeper" not in (project_dir / "agentsquad.config.json").read_text()
