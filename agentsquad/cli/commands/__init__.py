"""CLI commands for agentsquad."""
