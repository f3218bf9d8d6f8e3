from __future__ import annotations

"""Agent Pod builder.

``PodBuilder.build`` renders the single-container Pod that runs the agent
host for one ``AgentRun``:

- name ``<run>-agent``, owned by the run, ``restartPolicy: Never``;
- non-root (uid/gid 65532), ``RuntimeDefault`` seccomp, all capabilities
  dropped, read-only root filesystem;
- volumes ``config`` (the profile's PVC, read-only), ``data`` (emptyDir,
  writable) and ``secrets`` (read-only);
- environment exactly ``RUN_NAME``, ``RUN_UID``, ``RUN_NAMESPACE``,
  ``RUN_GOAL``, ``CONFIG_NAME``, ``LLM_PROVIDER``. The profile's iteration
  and time bounds travel as arguments to ``agentrun agent``.
"""

import logging
from typing import List

from ..apis.agentconfig import AgentConfig
from ..apis.agentrun import AgentRun
from ..core.settings import DEFAULT_CONFIG_PATH, DEFAULT_DATA_PATH, DEFAULT_SECRETS_PATH
from ..kube.models import (
    Capabilities,
    Container,
    EnvVar,
    ObjectMeta,
    PersistentVolumeClaimSource,
    Pod,
    PodSecurityContext,
    PodSpec,
    SeccompProfile,
    SecretSource,
    SecurityContext,
    Volume,
    VolumeMount,
)
from .labels import (
    COMPONENT_RUNTIME,
    LABEL_AGENTRUN,
    LABEL_COMPONENT,
    LABEL_CONFIG,
    LABEL_MANAGED_BY,
    MANAGED_BY,
)

logger = logging.getLogger(__name__)

CONTAINER_NAME = "agent"
NON_ROOT_UID = 65532
DEADLINE_GRACE_SECONDS = 60
DEFAULT_SECRET_NAME = "agent-llm-credentials"
AGENT_COMMAND = ("agentrun", "agent")

ENV_KEYS = ("RUN_NAME", "RUN_UID", "RUN_NAMESPACE", "RUN_GOAL", "CONFIG_NAME", "LLM_PROVIDER")


def pod_name(run: AgentRun) -> str:
    return f"{run.name}-agent"


class PodBuilder:
    """Build agent Pods from an image and the name of the credentials secret."""

    def __init__(self, image: str, *, secret_name: str = DEFAULT_SECRET_NAME) -> None:
        self.image = image
        self.secret_name = secret_name

    def build(self, run: AgentRun, config: AgentConfig) -> Pod:
        timeout_seconds = int(config.timeout.total_seconds())
        pod = Pod(
            metadata=ObjectMeta(
                name=pod_name(run),
                namespace=run.namespace,
                labels={
                    LABEL_AGENTRUN: run.name,
                    LABEL_CONFIG: config.name,
                    LABEL_COMPONENT: COMPONENT_RUNTIME,
                    LABEL_MANAGED_BY: MANAGED_BY,
                },
                owner_references=[run.owner_reference()],
            ),
            spec=PodSpec(
                service_account_name=config.service_account,
                restart_policy="Never",
                active_deadline_seconds=timeout_seconds + DEADLINE_GRACE_SECONDS,
                security_context=self._pod_security_context(),
                containers=[
                    Container(
                        name=CONTAINER_NAME,
                        image=self.image,
                        image_pull_policy="IfNotPresent",
                        command=list(AGENT_COMMAND),
                        args=["--max-iterations", str(config.max_iterations), "--timeout", str(timeout_seconds)],
                        env=self._env(run, config),
                        volume_mounts=self._volume_mounts(),
                        security_context=self._container_security_context(),
                    )
                ],
                volumes=self._volumes(config),
            ),
        )
        logger.debug("Built pod %s/%s for AgentRun %s", run.namespace, pod.metadata.name, run.name)
        return pod

    @staticmethod
    def _env(run: AgentRun, config: AgentConfig) -> List[EnvVar]:
        values = (run.name, run.uid, run.namespace, run.spec.goal, config.name, config.provider)
        return [EnvVar(name=k, value=v) for k, v in zip(ENV_KEYS, values)]

    @staticmethod
    def _pod_security_context() -> PodSecurityContext:
        return PodSecurityContext(
            run_as_non_root=True,
            run_as_user=NON_ROOT_UID,
            fs_group=NON_ROOT_UID,
            seccomp_profile=SeccompProfile(),
        )

    @staticmethod
    def _container_security_context() -> SecurityContext:
        return SecurityContext(
            allow_privilege_escalation=False,
            read_only_root_filesystem=True,
            run_as_non_root=True,
            capabilities=Capabilities(drop=["ALL"]),
            seccomp_profile=SeccompProfile(),
        )

    @staticmethod
    def _volume_mounts() -> List[VolumeMount]:
        return [
            VolumeMount(name="config", mount_path=DEFAULT_CONFIG_PATH, read_only=True),
            VolumeMount(name="data", mount_path=DEFAULT_DATA_PATH, read_only=False),
            VolumeMount(name="secrets", mount_path=DEFAULT_SECRETS_PATH, read_only=True),
        ]

    def _volumes(self, config: AgentConfig) -> List[Volume]:
        return [
            Volume(
                name="config",
                persistent_volume_claim=PersistentVolumeClaimSource(claim_name=config.spec.config_pvc, read_only=True),
            ),
            Volume(name="data", empty_dir={}),
            Volume(name="secrets", secret=SecretSource(secret_name=self.secret_name)),
        ]
