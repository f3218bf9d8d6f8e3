from __future__ import annotations

import asyncio

import pytest

from agentrun_controller.reconciler.config_cache import AgentConfigCache


@pytest.mark.asyncio
async def test_concurrent_lookups_load_once(make_config):
    cache = AgentConfigCache()
    loads = []

    async def loader(namespace: str, name: str):
        loads.append((namespace, name))
        await asyncio.sleep(0.01)
        return make_config(name, namespace)

    results = await asyncio.gather(*(cache.get_or_load("team-a", "p", loader) for _ in range(5)))

    assert loads == [("team-a", "p")]
    assert all(r is results[0] for r in results)
    assert cache.get("team-a", "p") is results[0]
    assert len(cache) == 1


@pytest.mark.asyncio
async def test_keys_are_namespaced(make_config):
    cache = AgentConfigCache()

    async def loader(namespace: str, name: str):
        return make_config(name, namespace)

    a = await cache.get_or_load("team-a", "p", loader)
    b = await cache.get_or_load("team-b", "p", loader)
    assert a is not b
    assert b.metadata.namespace == "team-b"
    assert len(cache) == 2


@pytest.mark.asyncio
async def test_failed_loads_are_not_cached(make_config):
    cache = AgentConfigCache()
    attempts = 0

    async def flaky(namespace: str, name: str):
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("api unavailable")
        return make_config(name, namespace)

    with pytest.raises(RuntimeError):
        await cache.get_or_load("team-a", "p", flaky)
    assert cache.get("team-a", "p") is None

    config = await cache.get_or_load("team-a", "p", flaky)
    assert config.name == "p"
    assert attempts == 2
