from __future__ import annotations

import json
from typing import List

import httpx
import pytest

from agentrun_controller.kube.client import KubeClient
from agentrun_controller.kube.errors import AlreadyExistsError, KubeApiError, NotFoundError
from agentrun_controller.provisioning.rbac import generate_role

BASE = "http://mock-kube"


def _client(handler, token: str | None = "t0ken") -> KubeClient:
    return KubeClient(BASE, token=token, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_list_agent_runs_parses_items_and_skips_malformed(make_run):
    good = make_run().to_manifest()
    bad = {"metadata": {"name": "broken", "namespace": "ns"}, "spec": {"goal": 42}}
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"items": [good, bad]})

    runs = await _client(handler).list_agent_runs()

    assert [r.name for r in runs] == ["diagnose"]
    assert seen[0].url.path == "/apis/agent.tekton.dev/v1alpha1/agentruns"
    assert seen[0].headers["Authorization"] == "Bearer t0ken"


@pytest.mark.asyncio
async def test_get_agent_config(make_config):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/apis/agent.tekton.dev/v1alpha1/namespaces/team-a/agentconfigs/default-profile"
        return httpx.Response(200, json=make_config(maxIterations=5).to_manifest())

    config = await _client(handler).get_agent_config("team-a", "default-profile")
    assert config.max_iterations == 5
    assert config.spec.config_pvc == "agent-config"


@pytest.mark.asyncio
async def test_update_status_sends_merge_patch_to_status_subresource(make_run):
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["path"] = request.url.path
        captured["content_type"] = request.headers["Content-Type"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={})

    run = make_run(phase="Acting")
    await _client(handler).update_agent_run_status(run)

    assert captured["method"] == "PATCH"
    assert captured["path"] == "/apis/agent.tekton.dev/v1alpha1/namespaces/team-a/agentruns/diagnose/status"
    assert captured["content_type"] == "application/merge-patch+json"
    assert captured["body"] == {"status": {"phase": "Acting"}}


@pytest.mark.asyncio
async def test_create_role_posts_manifest(make_run):
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(201, json=captured["body"])

    await _client(handler).create_role(generate_role(make_run()))

    assert captured["path"] == "/apis/rbac.authorization.k8s.io/v1/namespaces/team-a/roles"
    assert captured["body"]["kind"] == "Role"
    assert captured["body"]["metadata"]["name"] == "agentrun-diagnose"


@pytest.mark.asyncio
async def test_get_pod_reads_phase():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/namespaces/team-a/pods/diagnose-agent"
        return httpx.Response(200, json={"metadata": {"name": "diagnose-agent"}, "status": {"phase": "Running"}})

    pod = await _client(handler).get_pod("team-a", "diagnose-agent")
    assert pod.phase == "Running"


@pytest.mark.asyncio
async def test_404_maps_to_not_found():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"kind": "Status", "reason": "NotFound", "message": "pods not found"})

    with pytest.raises(NotFoundError) as ei:
        await _client(handler).get_pod("ns", "missing")
    assert ei.value.status_code == 404
    assert ei.value.details["reason"] == "NotFound"


@pytest.mark.asyncio
async def test_409_already_exists_maps_to_already_exists(make_run):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"kind": "Status", "reason": "AlreadyExists"})

    with pytest.raises(AlreadyExistsError):
        await _client(handler).create_role(generate_role(make_run()))


@pytest.mark.asyncio
async def test_409_conflict_is_a_generic_error(make_run):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"kind": "Status", "reason": "Conflict"})

    with pytest.raises(KubeApiError) as ei:
        await _client(handler).update_agent_run_status(make_run())
    assert not isinstance(ei.value, AlreadyExistsError)
    assert ei.value.status_code == 409


@pytest.mark.asyncio
async def test_transport_error_maps_to_kube_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(KubeApiError) as ei:
        await _client(handler).list_agent_runs()
    assert ei.value.status_code is None


@pytest.mark.asyncio
async def test_no_token_sends_no_authorization_header():
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={"items": []})

    assert await _client(handler, token=None).list_agent_runs() == []


def test_in_cluster_requires_service_host(monkeypatch):
    monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
    with pytest.raises(KubeApiError):
        KubeClient.in_cluster()


@pytest.mark.asyncio
async def test_in_cluster_reads_token_file(monkeypatch, tmp_path):
    token = tmp_path / "token"
    token.write_text("abc\n")
    monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.0.0.1")
    monkeypatch.setenv("KUBERNETES_SERVICE_PORT", "6443")

    client = KubeClient.in_cluster(token_path=str(token), ca_path=str(tmp_path / "missing-ca.crt"))
    try:
        assert client.base_url == "https://10.0.0.1:6443"
        assert client._auth_headers["Authorization"] == "Bearer abc"
    finally:
        await client.aclose()
