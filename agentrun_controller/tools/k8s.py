from __future__ import annotations

"""Read-only Kubernetes tools.

- ``GetResources`` (``k8s_get_resources``): list pods, deployments, services
  or replicasets in a namespace, summarized as JSON. At most 100 items.
- ``GetLogs`` (``k8s_get_logs``): fetch recent logs of one pod. At most 500
  lines from the last 900 seconds.

Both tools run with the agent Pod's service account, which the controller
binds to a read-only Role.
"""

import json
import logging
from typing import Any, Callable, Dict, List

from ..kube.client import KubeClient
from ..kube.errors import KubeApiError
from .base import bounded_int, optional_str, require_str
from .errors import ToolExecutionError, ToolInputError

logger = logging.getLogger(__name__)

MAX_LIMIT = 100
MAX_TAIL_LINES = 500
MAX_SINCE_SECONDS = 900


def _age(item: Dict[str, Any]) -> str:
    return (item.get("metadata") or {}).get("creationTimestamp") or "unknown"


def _meta(item: Dict[str, Any]) -> Dict[str, Any]:
    meta = item.get("metadata") or {}
    out: Dict[str, Any] = {"name": meta.get("name", ""), "namespace": meta.get("namespace", "")}
    return out


def _labels(out: Dict[str, Any], item: Dict[str, Any]) -> None:
    labels = (item.get("metadata") or {}).get("labels")
    if labels:
        out["labels"] = labels


def summarize_pod(item: Dict[str, Any]) -> Dict[str, Any]:
    status = item.get("status") or {}
    statuses = status.get("containerStatuses") or []
    ready = sum(1 for cs in statuses if cs.get("ready"))
    restarts = sum(int(cs.get("restartCount") or 0) for cs in statuses)
    out = _meta(item)
    out["phase"] = status.get("phase", "")
    _labels(out, item)
    out["ready"] = f"{ready}/{len(statuses)}"
    out["restarts"] = restarts
    out["age"] = _age(item)
    return out


def summarize_replicated(item: Dict[str, Any]) -> Dict[str, Any]:
    """Summarize a Deployment or a ReplicaSet."""
    desired = (item.get("spec") or {}).get("replicas")
    ready_replicas = (item.get("status") or {}).get("readyReplicas") or 0
    out = _meta(item)
    out["replicas"] = "0/0" if desired is None else f"{ready_replicas}/{desired}"
    _labels(out, item)
    out["age"] = _age(item)
    return out


def summarize_service(item: Dict[str, Any]) -> Dict[str, Any]:
    spec = item.get("spec") or {}
    out = _meta(item)
    out["type"] = spec.get("type", "")
    out["cluster_ip"] = spec.get("clusterIP", "")
    out["ports"] = [f"{p.get('port')}/{p.get('protocol', 'TCP')}" for p in spec.get("ports") or []]
    _labels(out, item)
    out["age"] = _age(item)
    return out


# resourceType -> (collection path template, summarizer)
RESOURCE_TYPES: Dict[str, tuple[str, Callable[[Dict[str, Any]], Dict[str, Any]]]] = {
    "pods": ("/api/v1/namespaces/{namespace}/pods", summarize_pod),
    "deployments": ("/apis/apps/v1/namespaces/{namespace}/deployments", summarize_replicated),
    "services": ("/api/v1/namespaces/{namespace}/services", summarize_service),
    "replicasets": ("/apis/apps/v1/namespaces/{namespace}/replicasets", summarize_replicated),
}


class GetResources:
    """List resources of one supported type in a namespace."""

    name = "k8s_get_resources"

    def __init__(self, kube: KubeClient) -> None:
        self._kube = kube

    async def execute(self, args: Dict[str, Any]) -> str:
        namespace = require_str(args, "namespace")
        resource_type = require_str(args, "resourceType")
        label_selector = optional_str(args, "labelSelector")
        limit = bounded_int(args, "limit", default=MAX_LIMIT, maximum=MAX_LIMIT)

        if resource_type not in RESOURCE_TYPES:
            raise ToolInputError(
                f"invalid resourceType: {resource_type} (must be one of: pods, deployments, services, replicasets)"
            )
        path_template, summarize = RESOURCE_TYPES[resource_type]

        params: Dict[str, Any] = {"limit": limit}
        if label_selector:
            params["labelSelector"] = label_selector
        logger.debug("k8s_get_resources: %s in %s params=%s", resource_type, namespace, params)
        try:
            data = await self._kube.get_json(path_template.format(namespace=namespace), params=params)
        except KubeApiError as e:
            raise ToolExecutionError(f"failed to list {resource_type}: {e}") from e

        # The server may ignore limit; enforce it here as well.
        items: List[Dict[str, Any]] = list(data.get("items") or [])[:limit]
        return json.dumps([summarize(item) for item in items], indent=2)


class GetLogs:
    """Fetch the tail of one pod's logs."""

    name = "k8s_get_logs"

    def __init__(self, kube: KubeClient) -> None:
        self._kube = kube

    async def execute(self, args: Dict[str, Any]) -> str:
        namespace = require_str(args, "namespace")
        pod = require_str(args, "pod")
        container = optional_str(args, "container")
        tail_lines = bounded_int(args, "tailLines", default=MAX_TAIL_LINES, maximum=MAX_TAIL_LINES)
        since_seconds = bounded_int(args, "sinceSeconds", default=MAX_SINCE_SECONDS, maximum=MAX_SINCE_SECONDS)

        params: Dict[str, Any] = {"tailLines": tail_lines, "sinceSeconds": since_seconds}
        if container:
            params["container"] = container
        logger.debug("k8s_get_logs: %s/%s params=%s", namespace, pod, params)
        try:
            return await self._kube.get_text(f"/api/v1/namespaces/{namespace}/pods/{pod}/log", params=params)
        except KubeApiError as e:
            raise ToolExecutionError(f"failed to get logs: {e}") from e
