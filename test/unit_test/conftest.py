from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from agentrun_controller.apis.agentconfig import AgentConfig
from agentrun_controller.apis.agentrun import AgentRun
from agentrun_controller.kube.errors import AlreadyExistsError, KubeApiError, NotFoundError
from agentrun_controller.kube.models import Pod, PodStatus, Role, RoleBinding


def build_run(
    name: str = "diagnose",
    namespace: str = "team-a",
    *,
    uid: str = "uid-1234",
    goal: str = "Find out why the build pipeline fails",
    config: str = "default-profile",
    phase: str = "",
    hints: Optional[list[str]] = None,
) -> AgentRun:
    raw: Dict[str, Any] = {
        "apiVersion": "agent.tekton.dev/v1alpha1",
        "kind": "AgentRun",
        "metadata": {"name": name, "namespace": namespace, "uid": uid},
        "spec": {"configRef": {"name": config}, "goal": goal},
    }
    if hints is not None:
        raw["spec"]["context"] = {"hints": hints}
    if phase:
        raw["status"] = {"phase": phase}
    return AgentRun.model_validate(raw)


def build_config(
    name: str = "default-profile",
    namespace: str = "team-a",
    **spec: Any,
) -> AgentConfig:
    raw_spec: Dict[str, Any] = {"serviceAccount": "agent-sa", "configPVC": "agent-config"}
    raw_spec.update(spec)
    return AgentConfig.model_validate(
        {
            "apiVersion": "agent.tekton.dev/v1alpha1",
            "kind": "AgentConfig",
            "metadata": {"name": name, "namespace": namespace},
            "spec": raw_spec,
        }
    )


@pytest.fixture
def make_run() -> Callable[..., AgentRun]:
    return build_run


@pytest.fixture
def make_config() -> Callable[..., AgentConfig]:
    return build_config


class FakeCluster:
    """In-memory stand-in for the cluster API."""

    def __init__(self) -> None:
        self.runs: List[AgentRun] = []
        self.configs: Dict[Tuple[str, str], AgentConfig] = {}
        self.roles: Dict[Tuple[str, str], Role] = {}
        self.bindings: Dict[Tuple[str, str], RoleBinding] = {}
        self.pods: Dict[Tuple[str, str], Pod] = {}
        self.calls: List[str] = []
        self.status_updates: List[AgentRun] = []
        self.config_reads = 0
        self.fail_pod_read: Optional[KubeApiError] = None
        self.fail_status_update_for: set[str] = set()

    async def list_agent_runs(self) -> List[AgentRun]:
        self.calls.append("list_agent_runs")
        return [run.model_copy(deep=True) for run in self.runs]

    async def get_agent_config(self, namespace: str, name: str) -> AgentConfig:
        self.config_reads += 1
        try:
            return self.configs[(namespace, name)].model_copy(deep=True)
        except KeyError:
            raise NotFoundError(f"agentconfigs {name} not found", status_code=404) from None

    async def update_agent_run_status(self, run: AgentRun) -> None:
        if run.name in self.fail_status_update_for:
            raise KubeApiError("conflict", status_code=409)
        self.status_updates.append(run.model_copy(deep=True))

    async def create_role(self, role: Role) -> None:
        self.calls.append("create_role")
        self._create(self.roles, role.metadata.namespace, role.metadata.name, role)

    async def create_role_binding(self, binding: RoleBinding) -> None:
        self.calls.append("create_role_binding")
        self._create(self.bindings, binding.metadata.namespace, binding.metadata.name, binding)

    async def create_pod(self, pod: Pod) -> None:
        self.calls.append("create_pod")
        self._create(self.pods, pod.metadata.namespace, pod.metadata.name, pod)

    async def get_pod(self, namespace: str, name: str) -> Pod:
        if self.fail_pod_read is not None:
            raise self.fail_pod_read
        try:
            return self.pods[(namespace, name)]
        except KeyError:
            raise NotFoundError(f"pods {name} not found", status_code=404) from None

    def set_pod_phase(self, namespace: str, name: str, phase: str) -> None:
        self.pods[(namespace, name)].status = PodStatus(phase=phase)

    @staticmethod
    def _create(store: dict, namespace: Optional[str], name: str, obj) -> None:
        key = (namespace or "", name)
        if key in store:
            raise AlreadyExistsError(f"{name} already exists", status_code=409)
        store[key] = obj


@pytest.fixture
def cluster(make_config) -> FakeCluster:
    fake = FakeCluster()
    config = make_config()
    fake.configs[(config.metadata.namespace, config.name)] = config
    return fake
