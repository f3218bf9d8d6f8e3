from __future__ import annotations

"""AgentRun reconciler.

``Reconciler.reconcile`` advances one ``AgentRun`` through its lifecycle:

- ``Pending``: create the read-only Role, the RoleBinding and the agent Pod
  (objects that already exist are fine), then move to ``Acting``.
- ``Acting``: mirror the agent Pod's terminal phase onto the run. A missing
  Pod sends the run back to ``Pending``.
- any other non-terminal phase is normalized to ``Pending``.

The reconciler only mutates ``run.status`` in memory; the controller loop
persists it. It is idempotent: invoking it again on the same observed state
never creates a second Role, RoleBinding or Pod.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from ..apis.agentconfig import AgentConfig
from ..apis.agentrun import AgentRun, AgentRunPhase
from ..kube.client import ClusterClient
from ..kube.errors import AlreadyExistsError, NotFoundError
from ..kube.models import PodPhase
from ..provisioning.pod import PodBuilder, pod_name
from ..provisioning.rbac import generate_role, generate_role_binding
from .config_cache import AgentConfigCache
from .errors import ConfigNotFoundError

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Reconciler:
    """Drive ``AgentRun`` objects from ``Pending`` to a terminal phase."""

    def __init__(
        self,
        *,
        client: ClusterClient,
        pod_builder: PodBuilder,
        cache: Optional[AgentConfigCache] = None,
    ) -> None:
        self._client = client
        self._pod_builder = pod_builder
        self._cache = cache or AgentConfigCache()

    async def reconcile(self, run: AgentRun) -> None:
        """
        Reconcile one run.

        Raises:
            ConfigNotFoundError: If the referenced profile does not exist.
            SpecValidationError: If the referenced profile is invalid.
            KubeApiError: If provisioning or the Pod read fails; the phase is
                left unchanged and the next tick retries.
        """
        if run.is_done():
            return

        config = await self._cache.get_or_load(run.namespace, run.spec.config_ref.name, self._load_config)

        if not run.has_started():
            run.status.start_time = _now()

        phase = run.status.phase
        if phase == AgentRunPhase.pending.value:
            await self.handle_pending(run, config)
        elif phase == AgentRunPhase.acting.value:
            await self.handle_acting(run)
        else:
            logger.debug("AgentRun %s/%s: phase %r -> Pending", run.namespace, run.name, phase)
            run.status.phase = AgentRunPhase.pending.value

    async def _load_config(self, namespace: str, name: str) -> AgentConfig:
        try:
            config = await self._client.get_agent_config(namespace, name)
        except NotFoundError as e:
            raise ConfigNotFoundError(namespace, name) from e
        config.validate_config()
        config.set_defaults()
        return config

    async def handle_pending(self, run: AgentRun, config: AgentConfig) -> None:
        role = generate_role(run)
        try:
            await self._client.create_role(role)
        except AlreadyExistsError:
            logger.debug("Role %s/%s already exists", run.namespace, role.metadata.name)

        binding = generate_role_binding(run, config, role.metadata.name)
        try:
            await self._client.create_role_binding(binding)
        except AlreadyExistsError:
            logger.debug("RoleBinding %s/%s already exists", run.namespace, binding.metadata.name)

        pod = self._pod_builder.build(run, config)
        try:
            await self._client.create_pod(pod)
        except AlreadyExistsError:
            logger.debug("Pod %s/%s already exists", run.namespace, pod.metadata.name)

        logger.info("AgentRun %s/%s provisioned; phase Pending -> Acting", run.namespace, run.name)
        run.status.phase = AgentRunPhase.acting.value

    async def handle_acting(self, run: AgentRun) -> None:
        try:
            pod = await self._client.get_pod(run.namespace, pod_name(run))
        except NotFoundError:
            logger.warning("Agent pod for %s/%s not found; phase Acting -> Pending", run.namespace, run.name)
            run.status.phase = AgentRunPhase.pending.value
            return

        if pod.phase == PodPhase.succeeded.value:
            run.status.phase = AgentRunPhase.succeeded.value
            run.status.completion_time = _now()
        elif pod.phase == PodPhase.failed.value:
            run.status.phase = AgentRunPhase.failed.value
            run.status.completion_time = _now()
        else:
            return
        logger.info("AgentRun %s/%s finished: %s", run.namespace, run.name, run.status.phase)
