"""``AgentRun``: one requested execution of an agent against a goal.

The reconciler is the only writer of ``status``. ``status.phase`` advances
``Pending -> Acting -> Succeeded|Failed`` and terminal phases are final.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from ..kube.models import KubeModel, ObjectMeta, OwnerReference
from .errors import SpecValidationError

GROUP = "agent.tekton.dev"
VERSION = "v1alpha1"
API_VERSION = f"{GROUP}/{VERSION}"
KIND = "AgentRun"
PLURAL = "agentruns"

MAX_NAME_LENGTH = 253


class AgentRunPhase(str, Enum):
    pending = "Pending"
    pre_hooks = "PreHooks"
    planning = "Planning"
    acting = "Acting"
    reflecting = "Reflecting"
    post_hooks = "PostHooks"
    succeeded = "Succeeded"
    failed = "Failed"


TERMINAL_PHASES = frozenset({AgentRunPhase.succeeded.value, AgentRunPhase.failed.value})


class ConfigRef(KubeModel):
    name: str = ""


class AgentContext(KubeModel):
    hints: Optional[List[str]] = None


class AgentRunSpec(KubeModel):
    config_ref: ConfigRef = Field(default_factory=ConfigRef)
    goal: str = ""
    context: Optional[AgentContext] = None


class AgentResult(KubeModel):
    name: str
    value: str


class AgentRunStatus(KubeModel):
    phase: str = ""
    start_time: Optional[datetime] = None
    completion_time: Optional[datetime] = None
    iterations: Optional[int] = None
    results: Optional[List[AgentResult]] = None
    conditions: Optional[List[Dict[str, Any]]] = None


class AgentRun(KubeModel):
    api_version: str = API_VERSION
    kind: str = KIND
    metadata: ObjectMeta
    spec: AgentRunSpec = Field(default_factory=AgentRunSpec)
    status: AgentRunStatus = Field(default_factory=AgentRunStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace or ""

    @property
    def uid(self) -> str:
        return self.metadata.uid or ""

    def is_done(self) -> bool:
        """Return True once the run reached a terminal phase."""
        return self.status.phase in TERMINAL_PHASES

    def has_started(self) -> bool:
        return self.status.start_time is not None

    def set_defaults(self) -> None:
        """Initialize an unset phase to ``Pending``."""
        if not self.status.phase:
            self.status.phase = AgentRunPhase.pending.value

    def validate_run(self) -> None:
        """
        Validate the declared run.

        Raises:
            SpecValidationError: On the first invalid field.
        """
        if not self.metadata.name:
            raise SpecValidationError(KIND, "metadata.name", "name is required")
        if len(self.metadata.name) > MAX_NAME_LENGTH:
            raise SpecValidationError(KIND, "metadata.name", f"name is too long (max {MAX_NAME_LENGTH} characters)")
        if not self.metadata.namespace:
            raise SpecValidationError(KIND, "metadata.namespace", "namespace is required")
        if not self.spec.config_ref.name:
            raise SpecValidationError(KIND, "spec.configRef.name", "configRef.name is required")
        if not self.spec.goal:
            raise SpecValidationError(KIND, "spec.goal", "goal is required")

    def owner_reference(self) -> OwnerReference:
        """Controller reference so derived objects are garbage collected with the run."""
        return OwnerReference(
            api_version=API_VERSION,
            kind=KIND,
            name=self.name,
            uid=self.uid,
            controller=True,
            block_owner_deletion=True,
        )
