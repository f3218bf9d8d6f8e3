from __future__ import annotations

"""Controller loop.

``Controller`` polls the cluster at a fixed interval. Each tick lists every
``AgentRun`` and reconciles the non-terminal ones concurrently; a failure in
one run is logged and never affects another. Status changes made by the
reconciler are persisted with a merge patch on the ``status`` subresource.

Shutdown is cooperative: setting the ``stop`` event ends the loop after the
current tick.
"""

import asyncio
import logging
from typing import List

from .apis.agentrun import AgentRun
from .apis.errors import SpecValidationError
from .kube.client import ClusterClient
from .kube.errors import KubeApiError
from .reconciler.agentrun import Reconciler

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5.0


class Controller:
    def __init__(
        self,
        *,
        client: ClusterClient,
        reconciler: Reconciler,
        interval: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        self._client = client
        self._reconciler = reconciler
        self._interval = interval

    async def tick(self) -> List[AgentRun]:
        """List and reconcile every run once. Returns the runs that were processed."""
        runs = await self._client.list_agent_runs()
        active = [run for run in runs if not run.is_done()]
        if active:
            logger.debug("Reconciling %d of %d AgentRuns", len(active), len(runs))
        await asyncio.gather(*(self._process(run) for run in active))
        return active

    async def _process(self, run: AgentRun) -> None:
        try:
            run.validate_run()
        except SpecValidationError as e:
            logger.warning("Skipping invalid AgentRun %s/%s: %s", run.namespace, run.name, e)
            return

        before = run.status.model_copy(deep=True)
        run.set_defaults()
        try:
            await self._reconciler.reconcile(run)
        except SpecValidationError as e:
            logger.warning("AgentRun %s/%s references an invalid AgentConfig: %s", run.namespace, run.name, e)
        except Exception:
            logger.exception("Failed to reconcile AgentRun %s/%s", run.namespace, run.name)

        if run.status == before:
            return
        try:
            await self._client.update_agent_run_status(run)
        except KubeApiError as e:
            logger.error("Failed to update status of AgentRun %s/%s: %s", run.namespace, run.name, e)
        else:
            logger.debug("Persisted status of AgentRun %s/%s: phase=%s", run.namespace, run.name, run.status.phase)

    async def run(self, stop: asyncio.Event) -> None:
        """Reconcile every ``interval`` seconds until ``stop`` is set."""
        logger.info("Controller started; interval=%ss", self._interval)
        while not stop.is_set():
            try:
                await self.tick()
            except KubeApiError as e:
                logger.error("Failed to list AgentRuns: %s", e)
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Controller stopped")
