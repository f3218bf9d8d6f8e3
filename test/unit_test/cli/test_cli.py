from __future__ import annotations

from typing import List
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from agentrun_controller.cli import app
from agentrun_controller.core.settings import ControllerSettings, HostSettings
from agentrun_controller.provisioning.pod import PodBuilder

runner = CliRunner()


class _FakeHost:
    instances: List["_FakeHost"] = []
    exit_code = 0

    def __init__(self, settings: HostSettings) -> None:
        self.settings = settings
        _FakeHost.instances.append(self)

    async def run(self) -> int:
        return self.exit_code


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch("agentrun_controller.cli.setup_logging") as m:
        yield m


@pytest.fixture
def fake_host():
    _FakeHost.instances = []
    _FakeHost.exit_code = 0
    with patch("agentrun_controller.host.AgentHost", _FakeHost):
        yield _FakeHost


def test_agent_passes_container_args_to_settings(fake_host, quiet_logging):
    result = runner.invoke(
        app,
        ["agent", "--max-iterations", "5", "--timeout", "120", "--goal", "check pods", "--log-level", "DEBUG"],
    )

    assert result.exit_code == 0, result.output
    settings = fake_host.instances[0].settings
    assert settings.max_iterations == 5
    assert settings.timeout_seconds == 120.0
    assert settings.goal == "check pods"
    quiet_logging.assert_called_once_with(log_level="DEBUG")


def test_agent_exit_code_follows_host(fake_host):
    fake_host.exit_code = 1
    result = runner.invoke(app, ["agent", "--goal", "g"])
    assert result.exit_code == 1


def test_agent_rejects_out_of_range_iterations(fake_host):
    result = runner.invoke(app, ["agent", "--max-iterations", "11"])
    assert result.exit_code != 0
    assert fake_host.instances == []


def test_controller_builds_settings_from_options():
    with patch("agentrun_controller.cli._run_controller", new_callable=AsyncMock) as run:
        result = runner.invoke(
            app,
            ["controller", "--image", "registry.local/agent:1.0", "--secret-name", "team-llm", "--interval", "2"],
        )

    assert result.exit_code == 0, result.output
    settings = run.await_args.args[0]
    assert isinstance(settings, ControllerSettings)
    assert settings.agent_image == "registry.local/agent:1.0"
    assert settings.agent_secret_name == "team-llm"
    assert settings.reconcile_interval_seconds == 2.0


def test_agent_pod_invocation_is_accepted(fake_host, make_run, make_config):
    config = make_config(maxIterations=4, timeout="90s")
    config.set_defaults()
    container = PodBuilder("agent:test").build(make_run(), config).spec.containers[0]

    assert container.command[0] == "agentrun"
    result = runner.invoke(app, [*container.command[1:], *container.args])

    assert result.exit_code == 0, result.output
    settings = fake_host.instances[0].settings
    assert settings.max_iterations == 4
    assert settings.timeout_seconds == 90.0
