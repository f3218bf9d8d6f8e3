"""``AgentConfig``: reusable execution profile referenced by ``AgentRun`` objects."""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional

from pydantic import Field

from ..kube.models import KubeModel, ObjectMeta
from .agentrun import API_VERSION
from .duration import Duration
from .errors import SpecValidationError

KIND = "AgentConfig"
PLURAL = "agentconfigs"

DEFAULT_MAX_ITERATIONS = 3
MAX_ITERATIONS_LIMIT = 10
DEFAULT_TIMEOUT = timedelta(minutes=8)
DEFAULT_PROVIDER = "claude"
DEFAULT_NETWORK_POLICY = "strict"
DEFAULT_OPA_POLICY = "strict"
DEFAULT_SERVICE_ACCOUNT = "default"

PROVIDERS = ("claude", "gemini")
ENFORCEMENT_MODES = ("strict", "permissive")


class PolicySpec(KubeModel):
    opa: Optional[str] = None


class AgentConfigSpec(KubeModel):
    service_account: Optional[str] = None
    config_pvc: str = Field(default="", alias="configPVC")
    max_iterations: Optional[int] = None
    timeout: Optional[Duration] = None
    pre_hooks: Optional[List[str]] = None
    post_hooks: Optional[List[str]] = None
    policy: PolicySpec = Field(default_factory=PolicySpec)
    network_policy: Optional[str] = None
    provider: Optional[str] = None


class AgentConfig(KubeModel):
    api_version: str = API_VERSION
    kind: str = KIND
    metadata: ObjectMeta
    spec: AgentConfigSpec = Field(default_factory=AgentConfigSpec)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def service_account(self) -> str:
        return self.spec.service_account or DEFAULT_SERVICE_ACCOUNT

    @property
    def max_iterations(self) -> int:
        return self.spec.max_iterations or DEFAULT_MAX_ITERATIONS

    @property
    def timeout(self) -> timedelta:
        return self.spec.timeout if self.spec.timeout is not None else DEFAULT_TIMEOUT

    @property
    def provider(self) -> str:
        return self.spec.provider or DEFAULT_PROVIDER

    def set_defaults(self) -> None:
        """Fill every optional field with its documented default."""
        spec = self.spec
        if not spec.service_account:
            spec.service_account = DEFAULT_SERVICE_ACCOUNT
        if not spec.max_iterations:
            spec.max_iterations = DEFAULT_MAX_ITERATIONS
        if spec.timeout is None:
            spec.timeout = DEFAULT_TIMEOUT
        if not spec.provider:
            spec.provider = DEFAULT_PROVIDER
        if not spec.network_policy:
            spec.network_policy = DEFAULT_NETWORK_POLICY
        if not spec.policy.opa:
            spec.policy.opa = DEFAULT_OPA_POLICY

    def validate_config(self) -> None:
        """
        Validate the declared profile.

        ``maxIterations`` of 0 means "unset" and is accepted; defaulting turns
        it into ``DEFAULT_MAX_ITERATIONS``.

        Raises:
            SpecValidationError: On the first invalid field.
        """
        if not self.metadata.name:
            raise SpecValidationError(KIND, "metadata.name", "name is required")
        if len(self.metadata.name) > 253:
            raise SpecValidationError(KIND, "metadata.name", "name is too long (max 253 characters)")
        spec = self.spec
        if not spec.config_pvc:
            raise SpecValidationError(KIND, "spec.configPVC", "configPVC is required")
        if spec.max_iterations is not None and not 0 <= spec.max_iterations <= MAX_ITERATIONS_LIMIT:
            raise SpecValidationError(
                KIND, "spec.maxIterations", f"maxIterations must be between 0 and {MAX_ITERATIONS_LIMIT}"
            )
        if spec.provider and spec.provider not in PROVIDERS:
            raise SpecValidationError(KIND, "spec.provider", "provider must be either 'claude' or 'gemini'")
        if spec.network_policy and spec.network_policy not in ENFORCEMENT_MODES:
            raise SpecValidationError(
                KIND, "spec.networkPolicy", "networkPolicy must be either 'strict' or 'permissive'"
            )
        if spec.policy.opa and spec.policy.opa not in ENFORCEMENT_MODES:
            raise SpecValidationError(KIND, "spec.policy.opa", "policy.opa must be either 'strict' or 'permissive'")
