"""Core functionality for agentsquad.

Submodules are imported directly (``from agentsquad.core.tasks import
TaskEngine``); the models package depends on ``core.ids`` and
``core.constants``, so this package keeps no eager imports.
"""
