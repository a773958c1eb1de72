"""Constants used throughout the agentsquad application."""


# Workspace layout
WORKSPACE_DIR_NAME = ".agentsquad"
SESSIONS_DIR_NAME = "sessions"
AGENTS_DIR_NAME = "agents"
CONFIG_FILE_NAME = "agentsquad.config.json"
DEFAULT_SESSION_ID = "default"

# Snapshot collections: readers see the latest record per id
SNAPSHOT_COLLECTIONS = {
    "session": "session.jsonl",
    "agents": "agents.jsonl",
    "tasks": "tasks.jsonl",
    "messages": "messages.jsonl",
    "agent_runs": "agent_runs.jsonl",
    "artifacts": "artifacts.jsonl",
}

# Append-only collections: readers see every record in append order
RECORD_COLLECTIONS = {
    "task_dependencies": "task_dependencies.jsonl",
    "task_status_history": "task_status_history.jsonl",
    "activity_logs": "activity_logs.jsonl",
    "events": "events.jsonl",
}

SENTINEL_KEY = "__init"
SESSION_LOCK_FILE_NAME = ".lock"

# Per-agent private files
AGENT_STDOUT_FILE = "stdout.log"
AGENT_STDERR_FILE = "stderr.log"
AGENT_INBOX_FILE = "inbox.jsonl"
AGENT_OUTBOX_FILE = "outbox.jsonl"
AGENT_PID_FILE = "pid.json"
AGENT_SNAPSHOT_FILE = "agent.json"

# Environment-derived identity
ENV_AGENT_ID = "AGENTSQUAD_AGENT_ID"
ENV_SESSION_ID = "AGENTSQUAD_SESSION_ID"
ENV_AGENT_ROLE = "AGENTSQUAD_AGENT_ROLE"
ENV_TASK_ID = "AGENTSQUAD_TASK_ID"
ENV_WORKSPACE_ROOT = "AGENTSQUAD_WORKSPACE_ROOT"

# Polling
DEFAULT_POLL_INTERVAL_MS = 1500
MIN_POLL_INTERVAL_MS = 100

# Default names handed to agents spawned without one
AGENT_NAME_POOL = [
    "david",
    "lucile",
    "max",
    "sarah",
    "leo",
    "ines",
    "nora",
    "adam",
    "jade",
    "yannis",
]

# Orchestration defaults
DEFAULT_ORCHESTRATOR_PROVIDER = "vibe"
DEFAULT_MANAGER_ROLE = "planner"
MANAGER_AGENT_NAME = "manager"
MANAGER_TASK_DESCRIPTION = "Create a plan, define roles, and coordinate the project."
