"""agentsquad - Spawn and coordinate CLI agents across providers."""

__version__ = "0.1.0"

# Export main CLI for convenience
from .cli.main import cli

__all__ = ['cli']
