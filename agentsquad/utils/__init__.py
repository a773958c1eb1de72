"""Utility modules for agentsquad."""
