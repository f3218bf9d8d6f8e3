"""Unit tests for environment-bound settings."""

import pytest
from pydantic import ValidationError

from agentrun_controller.core.settings import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_DATA_PATH,
    DEFAULT_SECRETS_PATH,
    ControllerSettings,
    HostSettings,
)

HOST_ENV = {
    "RUN_NAME": "diagnose",
    "RUN_UID": "uid-1",
    "RUN_NAMESPACE": "team-a",
    "RUN_GOAL": "Find the crashing pod",
    "CONFIG_NAME": "default-profile",
    "LLM_PROVIDER": "claude",
}


@pytest.fixture
def clean_env(monkeypatch):
    for key in (
        *HOST_ENV,
        "AGENT_MAX_ITERATIONS",
        "AGENT_TIMEOUT_SECONDS",
        "AGENT_CONFIG_PATH",
        "AGENT_DATA_PATH",
        "AGENT_SECRETS_PATH",
        "AGENT_IMAGE",
        "AGENT_SECRET_NAME",
        "RECONCILE_INTERVAL_SECONDS",
        "KUBE_API_SERVER",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir("/")
    return monkeypatch


class TestHostSettings:
    def test_execution_contract_is_read_from_env(self, clean_env):
        for key, value in HOST_ENV.items():
            clean_env.setenv(key, value)

        s = HostSettings()

        assert (s.run_name, s.run_uid, s.run_namespace) == ("diagnose", "uid-1", "team-a")
        assert s.goal == "Find the crashing pod"
        assert s.config_name == "default-profile"
        assert s.provider == "claude"

    def test_defaults(self, clean_env):
        s = HostSettings()

        assert s.config_path == DEFAULT_CONFIG_PATH == "/workspace/config"
        assert s.data_path == DEFAULT_DATA_PATH == "/workspace/data"
        assert s.secrets_path == DEFAULT_SECRETS_PATH == "/workspace/secrets"
        assert s.max_iterations == 3
        assert s.timeout_seconds == 480.0
        assert s.kube_api_server is None

    def test_field_names_are_accepted(self, clean_env):
        s = HostSettings(goal="g", max_iterations=7, timeout_seconds=30)
        assert (s.goal, s.max_iterations, s.timeout_seconds) == ("g", 7, 30.0)

    def test_env_names_are_case_sensitive(self, clean_env):
        clean_env.setenv("run_goal", "lowercase is ignored")
        assert HostSettings().goal == ""

    @pytest.mark.parametrize("value", ["0", "11"])
    def test_max_iterations_bounds(self, clean_env, value):
        clean_env.setenv("AGENT_MAX_ITERATIONS", value)
        with pytest.raises(ValidationError):
            HostSettings()

    def test_timeout_must_be_positive(self, clean_env):
        with pytest.raises(ValidationError):
            HostSettings(timeout_seconds=0)


class TestControllerSettings:
    def test_defaults(self, clean_env):
        s = ControllerSettings()

        assert s.agent_secret_name == "agent-llm-credentials"
        assert s.reconcile_interval_seconds == 5.0
        assert s.kube_api_server is None

    def test_env_overrides(self, clean_env):
        clean_env.setenv("AGENT_IMAGE", "registry.local/agent:2.0")
        clean_env.setenv("AGENT_SECRET_NAME", "team-llm")
        clean_env.setenv("RECONCILE_INTERVAL_SECONDS", "2.5")

        s = ControllerSettings()

        assert s.agent_image == "registry.local/agent:2.0"
        assert s.agent_secret_name == "team-llm"
        assert s.reconcile_interval_seconds == 2.5
