"""CLI package for agentsquad."""

from .main import cli

__all__ = ['cli']
