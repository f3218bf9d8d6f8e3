"""Reconciliation of ``AgentRun`` objects."""

from .agentrun import Reconciler
from .config_cache import AgentConfigCache
from .errors import ConfigNotFoundError

__all__ = ["AgentConfigCache", "ConfigNotFoundError", "Reconciler"]
