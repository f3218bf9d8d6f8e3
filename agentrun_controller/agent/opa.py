from __future__ import annotations

"""Open Policy Agent evaluator over the OPA REST API.

``OPAEvaluator`` backs ``PolicyGate`` with an OPA server (usually a sidecar
at ``http://localhost:8181``):

- ``prepare`` uploads the policy module with ``PUT /v1/policies/<id>``; OPA
  compiles it on upload and answers HTTP 400 when it does not compile. The
  optional data document is stored with ``PUT /v1/data``.
- ``evaluate`` posts ``{"input": ...}`` to ``/v1/data/agent/tools/allow``
  and returns the raw ``result`` value, or ``UNDEFINED`` when OPA omits it.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .errors import PolicyCompileError, PolicyEvaluationError
from .policy import QUERY_PATH, UNDEFINED

DEFAULT_POLICY_ID = "agent.rego"


def _query_url_path(query: str) -> str:
    # data.agent.tools.allow -> /v1/data/agent/tools/allow
    parts = query.split(".")
    if parts[0] == "data":
        parts = parts[1:]
    return "/v1/data/" + "/".join(parts)


class OPAEvaluator:
    """
    Thin async HTTP client for one OPA policy module.

    Bring your own ``httpx.AsyncClient`` (tests pass one with a
    ``MockTransport``) or let the evaluator create one.
    """

    def __init__(
        self,
        base_url: str,
        *,
        policy_id: str = DEFAULT_POLICY_ID,
        query: str = QUERY_PATH,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.policy_id = policy_id
        self.query = query
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def prepare(self, source: str, data: Optional[Dict[str, Any]] = None) -> None:
        try:
            self._logger.debug("OPAEvaluator.prepare: PUT %s/v1/policies/%s", self.base_url, self.policy_id)
            r = await self._client.put(
                f"{self.base_url}/v1/policies/{self.policy_id}",
                content=source.encode("utf-8"),
                headers={"Content-Type": "text/plain"},
            )
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PolicyCompileError(
                f"failed to compile policy: {e.response.status_code} {e.response.text}",
                details=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise PolicyCompileError(f"failed to upload policy: {e}") from e

        if data is None:
            return
        try:
            self._logger.debug("OPAEvaluator.prepare: PUT %s/v1/data", self.base_url)
            r = await self._client.put(f"{self.base_url}/v1/data", json=data)
            r.raise_for_status()
        except httpx.HTTPError as e:
            raise PolicyCompileError(f"failed to load policy data: {e}") from e

    async def evaluate(self, input: Dict[str, Any]) -> Any:
        path = _query_url_path(self.query)
        try:
            r = await self._client.post(f"{self.base_url}{path}", json={"input": input})
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PolicyEvaluationError(
                f"OPA query failed: {e.response.status_code}",
                status_code=e.response.status_code,
                details=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise PolicyEvaluationError(f"OPA query failed: {e}") from e

        body = r.json()
        if not isinstance(body, dict):
            raise PolicyEvaluationError("Unexpected response shape from OPA", status_code=r.status_code, details=body)
        if "result" not in body:
            self._logger.debug("OPAEvaluator.evaluate: %s is undefined", self.query)
            return UNDEFINED
        return body["result"]
