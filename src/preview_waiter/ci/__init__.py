"""
GitHub Actions adapters for the Vercel preview waiter.

This package reads the workflow run context and publishes step outputs and
failures using the runner's file and workflow-command protocols.
"""

from .context import ActionContext
from .outputs import ActionOutputs

__all__ = ["ActionContext", "ActionOutputs"]
