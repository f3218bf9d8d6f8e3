from __future__ import annotations

"""Kubernetes REST client.

``ClusterClient`` is the narrow contract the reconciler and the controller
loop depend on. ``KubeClient`` implements it on top of ``httpx.AsyncClient``
and also exposes a few raw helpers (``get_json``, ``post_json``,
``get_text``) used by the agent-side tools.

Error mapping
-------------

- HTTP 404 -> ``NotFoundError``
- HTTP 409 with reason ``AlreadyExists`` -> ``AlreadyExistsError``
- any other non-2xx status or transport failure -> ``KubeApiError``
"""

import logging
import os
import ssl
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import httpx
from pydantic import ValidationError

from ..apis.agentconfig import PLURAL as AGENTCONFIG_PLURAL
from ..apis.agentconfig import AgentConfig
from ..apis.agentrun import API_VERSION as AGENT_API_VERSION
from ..apis.agentrun import PLURAL as AGENTRUN_PLURAL
from ..apis.agentrun import AgentRun
from .errors import AlreadyExistsError, KubeApiError, NotFoundError
from .models import Pod, Role, RoleBinding

logger = logging.getLogger(__name__)

IN_CLUSTER_TOKEN_PATH = "/var/run/secrets/kubernetes.io/serviceaccount/token"
IN_CLUSTER_CA_PATH = "/var/run/secrets/kubernetes.io/serviceaccount/ca.crt"

RBAC_API = "/apis/rbac.authorization.k8s.io/v1"
CORE_API = "/api/v1"
AGENT_API = f"/apis/{AGENT_API_VERSION}"


class ClusterClient(Protocol):
    """Cluster operations needed by the reconciler and the controller loop."""

    async def list_agent_runs(self) -> List[AgentRun]: ...

    async def get_agent_config(self, namespace: str, name: str) -> AgentConfig: ...

    async def update_agent_run_status(self, run: AgentRun) -> None: ...

    async def create_role(self, role: Role) -> None: ...

    async def create_role_binding(self, binding: RoleBinding) -> None: ...

    async def create_pod(self, pod: Pod) -> None: ...

    async def get_pod(self, namespace: str, name: str) -> Pod: ...


class KubeClient:
    """
    Thin async HTTP client for the Kubernetes API server.

    Only the handful of endpoints this project needs are wrapped. Bring your
    own ``httpx.AsyncClient`` (tests pass one with a ``MockTransport``) or use
    ``in_cluster`` to build one from the mounted service account.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        verify: ssl.SSLContext | bool = True,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.AsyncClient(timeout=timeout, verify=verify)
        self._auth_headers = headers

    @classmethod
    def in_cluster(
        cls,
        *,
        api_server: Optional[str] = None,
        token_path: str = IN_CLUSTER_TOKEN_PATH,
        ca_path: str = IN_CLUSTER_CA_PATH,
    ) -> "KubeClient":
        """Build a client from the service account mounted into every Pod."""
        if api_server is None:
            host = os.getenv("KUBERNETES_SERVICE_HOST")
            port = os.getenv("KUBERNETES_SERVICE_PORT", "443")
            if not host:
                raise KubeApiError("not running in a cluster: KUBERNETES_SERVICE_HOST is unset")
            api_server = f"https://{host}:{port}"

        token_file = Path(token_path)
        token = token_file.read_text(encoding="utf-8").strip() if token_file.exists() else None
        verify: ssl.SSLContext | bool = True
        if Path(ca_path).exists():
            verify = ssl.create_default_context(cafile=ca_path)
        logger.debug("KubeClient.in_cluster: api_server=%s token=%s", api_server, "yes" if token else "no")
        return cls(api_server, token=token, verify=verify)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "KubeClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Raw helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        merged = dict(self._auth_headers)
        if headers:
            merged.update(headers)
        logger.debug("KubeClient: %s %s params=%s", method, path, params)
        try:
            r = await self._client.request(method, url, params=params, json=json, headers=merged)
        except httpx.HTTPError as e:
            raise KubeApiError(f"{method} {path} failed: {e}") from e
        if r.is_success:
            return r

        details: Any
        try:
            details = r.json()
        except ValueError:
            details = r.text
        reason = details.get("reason") if isinstance(details, dict) else None
        message = details.get("message") if isinstance(details, dict) else None
        text = f"{method} {path} failed: {r.status_code} {message or reason or r.reason_phrase}"
        if r.status_code == 404:
            raise NotFoundError(text, status_code=404, details=details)
        if r.status_code == 409 and reason in ("AlreadyExists", None):
            raise AlreadyExistsError(text, status_code=409, details=details)
        raise KubeApiError(text, status_code=r.status_code, details=details)

    async def get_json(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        r = await self._request("GET", path, params=params)
        return r.json()

    async def post_json(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        r = await self._request("POST", path, json=body)
        return r.json()

    async def get_text(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> str:
        r = await self._request("GET", path, params=params)
        return r.text

    # ------------------------------------------------------------------
    # ClusterClient
    # ------------------------------------------------------------------

    async def list_agent_runs(self) -> List[AgentRun]:
        data = await self.get_json(f"{AGENT_API}/{AGENTRUN_PLURAL}")
        runs: List[AgentRun] = []
        for item in data.get("items") or []:
            try:
                runs.append(AgentRun.model_validate(item))
            except ValidationError as e:
                meta = item.get("metadata") or {}
                logger.warning(
                    "Skipping malformed AgentRun %s/%s: %s", meta.get("namespace"), meta.get("name"), e
                )
        logger.debug("KubeClient.list_agent_runs: got %d runs", len(runs))
        return runs

    async def get_agent_config(self, namespace: str, name: str) -> AgentConfig:
        data = await self.get_json(f"{AGENT_API}/namespaces/{namespace}/{AGENTCONFIG_PLURAL}/{name}")
        return AgentConfig.model_validate(data)

    async def update_agent_run_status(self, run: AgentRun) -> None:
        path = f"{AGENT_API}/namespaces/{run.namespace}/{AGENTRUN_PLURAL}/{run.name}/status"
        await self._request(
            "PATCH",
            path,
            json={"status": run.status.to_manifest()},
            headers={"Content-Type": "application/merge-patch+json"},
        )

    async def create_role(self, role: Role) -> None:
        await self.post_json(f"{RBAC_API}/namespaces/{role.metadata.namespace}/roles", role.to_manifest())

    async def create_role_binding(self, binding: RoleBinding) -> None:
        await self.post_json(
            f"{RBAC_API}/namespaces/{binding.metadata.namespace}/rolebindings", binding.to_manifest()
        )

    async def create_pod(self, pod: Pod) -> None:
        await self.post_json(f"{CORE_API}/namespaces/{pod.metadata.namespace}/pods", pod.to_manifest())

    async def get_pod(self, namespace: str, name: str) -> Pod:
        data = await self.get_json(f"{CORE_API}/namespaces/{namespace}/pods/{name}")
        return Pod.model_validate(data)
