import json

import pytest


@pytest.fixture
def project_dir(initialized_project, monkeypatch):
    """Initialized project as the working directory, with no caller identity set."""
    monkeypatch.chdir(initialized_project)
    monkeypatch.delenv("AGENTSQUAD_AGENT_ID", raising=False)
    monkeypatch.delenv("AGENTSQUAD_SESSION_ID", raising=False)
    return initialized_project


@pytest.fixture
def invoke_json(cli_runner):
    """Invoke a command with ``--json`` and decode its output."""
    def invoke(command, args, **kwargs):
        result = cli_runner.invoke(command, [*args, "--json"], **kwargs)
        assert result.exit_code == 0, result.output
        return json.loads(result.stdout)
    return invoke
