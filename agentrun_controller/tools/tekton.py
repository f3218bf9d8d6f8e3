from __future__ import annotations

"""Tekton tool: ``tekton_create_pipelinerun``.

Creates a ``tekton.dev/v1`` PipelineRun referencing an existing Pipeline.
When the host knows its ``AgentRun``, the PipelineRun gets an owner
reference to it so it is garbage-collected with the run.
"""

import logging
from typing import Any, Dict, List, Optional

from ..apis.agentrun import API_VERSION as AGENT_API_VERSION
from ..apis.agentrun import KIND as AGENT_KIND
from ..kube.client import KubeClient
from ..kube.errors import KubeApiError
from .base import optional_list, require_str
from .errors import ToolExecutionError, ToolInputError

logger = logging.getLogger(__name__)

TEKTON_API_VERSION = "tekton.dev/v1"


def _params(raw: Optional[List[Any]]) -> List[Dict[str, Any]]:
    params: List[Dict[str, Any]] = []
    for p in raw or []:
        if not isinstance(p, dict):
            raise ToolInputError("each param must be an object with name and value")
        name = p.get("name")
        if not isinstance(name, str):
            raise ToolInputError("param name is required")
        value = p.get("value")
        if not isinstance(value, str):
            raise ToolInputError("param value must be a string")
        params.append({"name": name, "value": value})
    return params


def _workspaces(raw: Optional[List[Any]]) -> List[Dict[str, Any]]:
    workspaces: List[Dict[str, Any]] = []
    for w in raw or []:
        if not isinstance(w, dict):
            raise ToolInputError("each workspace must be an object")
        name = w.get("name")
        if not isinstance(name, str):
            raise ToolInputError("workspace name is required")
        binding: Dict[str, Any] = {"name": name}
        pvc = w.get("pvcName")
        if isinstance(pvc, str):
            binding["persistentVolumeClaim"] = {"claimName": pvc}
        if w.get("emptyDir") is True:
            binding["emptyDir"] = {}
        workspaces.append(binding)
    return workspaces


class CreatePipelineRun:
    """Create a PipelineRun for an existing Pipeline."""

    name = "tekton_create_pipelinerun"

    def __init__(self, kube: KubeClient, *, run_name: str = "", run_uid: str = "") -> None:
        self._kube = kube
        self._run_name = run_name
        self._run_uid = run_uid

    def build(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Render the PipelineRun manifest for ``args``."""
        namespace = require_str(args, "namespace")
        name = require_str(args, "name")
        pipeline_name = require_str(args, "pipelineName")

        metadata: Dict[str, Any] = {"name": name, "namespace": namespace}
        if self._run_name and self._run_uid:
            metadata["ownerReferences"] = [
                {"apiVersion": AGENT_API_VERSION, "kind": AGENT_KIND, "name": self._run_name, "uid": self._run_uid}
            ]

        spec: Dict[str, Any] = {"pipelineRef": {"name": pipeline_name}}
        params = _params(optional_list(args, "params"))
        if params:
            spec["params"] = params
        workspaces = _workspaces(optional_list(args, "workspaces"))
        if workspaces:
            spec["workspaces"] = workspaces

        return {"apiVersion": TEKTON_API_VERSION, "kind": "PipelineRun", "metadata": metadata, "spec": spec}

    async def execute(self, args: Dict[str, Any]) -> str:
        manifest = self.build(args)
        namespace = manifest["metadata"]["namespace"]
        logger.info("tekton_create_pipelinerun: creating %s/%s", namespace, manifest["metadata"]["name"])
        try:
            created = await self._kube.post_json(
                f"/apis/{TEKTON_API_VERSION}/namespaces/{namespace}/pipelineruns", manifest
            )
        except KubeApiError as e:
            raise ToolExecutionError(f"failed to create PipelineRun: {e}") from e
        meta = created.get("metadata") or {}
        return (
            f"PipelineRun {meta.get('namespace', namespace)}/{meta.get('name', manifest['metadata']['name'])} "
            "created successfully"
        )
