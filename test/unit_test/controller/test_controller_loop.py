from __future__ import annotations

import asyncio
import logging

import pytest

from agentrun_controller.controller import Controller
from agentrun_controller.kube.errors import KubeApiError
from agentrun_controller.provisioning.pod import PodBuilder
from agentrun_controller.reconciler.agentrun import Reconciler


def _controller(cluster, **kwargs) -> Controller:
    reconciler = Reconciler(client=cluster, pod_builder=PodBuilder("agent:test"))
    return Controller(client=cluster, reconciler=reconciler, **kwargs)


@pytest.mark.asyncio
async def test_tick_defaults_provisions_and_persists(cluster, make_run):
    cluster.runs = [make_run("one"), make_run("two")]

    processed = await _controller(cluster).tick()

    assert [r.name for r in processed] == ["one", "two"]
    assert sorted(r.name for r in cluster.status_updates) == ["one", "two"]
    assert all(r.status.phase == "Acting" for r in cluster.status_updates)
    assert len(cluster.pods) == 2


@pytest.mark.asyncio
async def test_tick_skips_terminal_runs(cluster, make_run):
    cluster.runs = [make_run("done", phase="Succeeded"), make_run("failed", phase="Failed")]

    processed = await _controller(cluster).tick()

    assert processed == []
    assert cluster.status_updates == []
    assert cluster.config_reads == 0


@pytest.mark.asyncio
async def test_invalid_run_is_skipped_with_warning(cluster, make_run, caplog):
    cluster.runs = [make_run("no-goal", goal=""), make_run("ok")]

    with caplog.at_level(logging.WARNING, logger="agentrun_controller.controller"):
        await _controller(cluster).tick()

    assert [r.name for r in cluster.status_updates] == ["ok"]
    assert "Skipping invalid AgentRun team-a/no-goal" in caplog.text


@pytest.mark.asyncio
async def test_unchanged_status_is_not_persisted(cluster, make_run):
    controller = _controller(cluster)
    cluster.runs = [make_run("one")]
    await controller.tick()
    assert len(cluster.status_updates) == 1

    # Still Acting and the pod is running: nothing to write.
    cluster.runs = cluster.status_updates[-1:]
    cluster.set_pod_phase("team-a", "one-agent", "Running")
    await controller.tick()
    assert len(cluster.status_updates) == 1


@pytest.mark.asyncio
async def test_one_failing_run_does_not_affect_others(cluster, make_run, caplog):
    cluster.runs = [make_run("orphan", config="missing"), make_run("ok")]

    with caplog.at_level(logging.ERROR, logger="agentrun_controller.controller"):
        await _controller(cluster).tick()

    updated = {r.name: r.status.phase for r in cluster.status_updates}
    assert updated["ok"] == "Acting"
    # Defaulting still produced a change for the failing run.
    assert updated["orphan"] == "Pending"
    assert "Failed to reconcile AgentRun team-a/orphan" in caplog.text


@pytest.mark.asyncio
async def test_status_update_failure_is_logged(cluster, make_run, caplog):
    cluster.runs = [make_run("conflicted"), make_run("ok")]
    cluster.fail_status_update_for = {"conflicted"}

    with caplog.at_level(logging.ERROR, logger="agentrun_controller.controller"):
        await _controller(cluster).tick()

    assert [r.name for r in cluster.status_updates] == ["ok"]
    assert "Failed to update status of AgentRun team-a/conflicted" in caplog.text


@pytest.mark.asyncio
async def test_run_loops_until_stopped(cluster, make_run):
    cluster.runs = [make_run("one")]
    stop = asyncio.Event()
    controller = _controller(cluster, interval=0.01)

    task = asyncio.create_task(controller.run(stop))
    await asyncio.sleep(0.05)
    stop.set()
    await asyncio.wait_for(task, timeout=1.0)

    assert cluster.calls.count("list_agent_runs") >= 2


@pytest.mark.asyncio
async def test_run_survives_list_failures(cluster):
    stop = asyncio.Event()
    attempts = 0

    async def failing_list():
        nonlocal attempts
        attempts += 1
        if attempts >= 3:
            stop.set()
        raise KubeApiError("GET agentruns failed: 503", status_code=503)

    cluster.list_agent_runs = failing_list
    await asyncio.wait_for(_controller(cluster, interval=0.001).run(stop), timeout=1.0)

    assert attempts == 3
