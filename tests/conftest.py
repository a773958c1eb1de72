import pytest
from click.testing import CliRunner

from agentsquad.core.agents import AgentManager
from agentsquad.core.artifacts import ArtifactRegistry
from agentsquad.core.events import EventLog
from agentsquad.core.messages import MessageService
from agentsquad.core.record_store import RecordStore
from agentsquad.core.tasks import TaskEngine
from agentsquad.models.config import ProviderConfig, Transport
from agentsquad.models.agent import ProviderMode
from agentsquad.utils.config_manager import ConfigManager, default_config


class SleepRecorder:
    """Stand-in for ``time.sleep`` that runs scripted actions instead of sleeping."""

    def __init__(self):
        self.calls = []
        self.actions = []

    def __call__(self, seconds):
        self.calls.append(seconds)
        if self.actions:
            self.actions.pop(0)()


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def project_root(tmp_path):
    """Creates a temporary project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def config():
    """Default configuration plus a detached provider running ``sleep``."""
    cfg = default_config()
    cfg.providers["sleeper"] = ProviderConfig(
        command="sleep",
        args=["30"],
        mode=ProviderMode.DETACHED,
        transport=Transport.STDIN,
    )
    cfg.providers["failing"] = ProviderConfig(
        command="sh",
        args=["-c", "echo 'boom: something failed' >&2; exit 3"],
        transport=Transport.STDIN,
    )
    return cfg


@pytest.fixture
def initialized_project(project_root, config):
    """Project root holding a saved configuration."""
    ConfigManager(project_root).save_config(config)
    return project_root


@pytest.fixture
def store(project_root):
    return RecordStore(project_root)


@pytest.fixture
def events(store):
    return EventLog(store)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def engine(store, events, sleeper):
    return TaskEngine(store, events, poll_interval_ms=100, sleep=sleeper)


@pytest.fixture
def agents(store, config, engine, events):
    return AgentManager(store, config, engine, events)


@pytest.fixture
def messages(agents, events):
    return MessageService(agents, events)


@pytest.fixture
def artifacts(store, events):
    return ArtifactRegistry(store, events)
