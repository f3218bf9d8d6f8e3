"""Declared objects of the ``agent.tekton.dev/v1alpha1`` API group.

- ``AgentRun``: one execution request (goal + reference to a profile).
- ``AgentConfig``: a reusable execution profile.

Both models carry their own defaulting (``set_defaults``) and validation
(``validate_run`` / ``validate_config``) so the controller can reject invalid
objects before provisioning anything.
"""

from .agentconfig import AgentConfig, AgentConfigSpec, PolicySpec
from .agentrun import (
    AgentContext,
    AgentResult,
    AgentRun,
    AgentRunPhase,
    AgentRunSpec,
    AgentRunStatus,
    ConfigRef,
)
from .errors import SpecValidationError

__all__ = [
    "AgentConfig",
    "AgentConfigSpec",
    "AgentContext",
    "AgentResult",
    "AgentRun",
    "AgentRunPhase",
    "AgentRunSpec",
    "AgentRunStatus",
    "ConfigRef",
    "PolicySpec",
    "SpecValidationError",
]
