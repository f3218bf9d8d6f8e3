"""
Configuration Settings.

This module defines the runtime configuration of both processes using
Pydantic's BaseSettings. Values are bound from environment variables (and an
optional ``.env`` file) through field aliases; the CLI may override any of
them.

- ``HostSettings``: the agent host running inside the agent Pod. The first six
  fields are the execution-unit environment contract written by the
  controller's Pod builder.
- ``ControllerSettings``: the reconciliation controller.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_PATH = "/workspace/config"
DEFAULT_DATA_PATH = "/workspace/data"
DEFAULT_SECRETS_PATH = "/workspace/secrets"


class HostSettings(BaseSettings):
    """
    Agent host settings.

    All properties are automatically bound from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Execution unit contract (set by the controller)
    # =====================================================================
    run_name: str = Field(default="", alias="RUN_NAME", description="Name of the AgentRun being executed")
    run_uid: str = Field(default="", alias="RUN_UID", description="UID of the AgentRun being executed")
    run_namespace: str = Field(default="", alias="RUN_NAMESPACE", description="Namespace of the AgentRun")
    goal: str = Field(default="", alias="RUN_GOAL", description="Goal for the agent to achieve")
    config_name: str = Field(default="", alias="CONFIG_NAME", description="Name of the AgentConfig in use")
    provider: str = Field(default="claude", alias="LLM_PROVIDER", description="LLM provider (claude or gemini)")

    # =====================================================================
    # Mounted volumes
    # =====================================================================
    config_path: str = Field(
        default=DEFAULT_CONFIG_PATH, alias="AGENT_CONFIG_PATH", description="Path to the read-only config volume"
    )
    data_path: str = Field(
        default=DEFAULT_DATA_PATH, alias="AGENT_DATA_PATH", description="Path to the writable data volume"
    )
    secrets_path: str = Field(
        default=DEFAULT_SECRETS_PATH, alias="AGENT_SECRETS_PATH", description="Path to the read-only secrets volume"
    )

    # =====================================================================
    # Loop bounds
    # =====================================================================
    max_iterations: int = Field(
        default=3, ge=1, le=10, alias="AGENT_MAX_ITERATIONS", description="Maximum plan-act-reflect iterations"
    )
    timeout_seconds: float = Field(
        default=480.0, gt=0, alias="AGENT_TIMEOUT_SECONDS", description="Overall deadline for the agent run"
    )

    # =====================================================================
    # Collaborators
    # =====================================================================
    opa_url: str = Field(
        default="http://localhost:8181", alias="OPA_URL", description="Base URL of the OPA policy evaluator"
    )
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20241022", alias="ANTHROPIC_MODEL", description="Anthropic model to use"
    )
    kube_api_server: Optional[str] = Field(
        default=None, alias="KUBE_API_SERVER", description="Kubernetes API server URL (defaults to in-cluster)"
    )
    log_level: str = Field(default="INFO", alias="AGENTRUN_LOG_LEVEL", description="Logging level")


class ControllerSettings(BaseSettings):
    """
    Reconciliation controller settings.

    All properties are automatically bound from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    agent_image: str = Field(
        default="ghcr.io/agentrun/agent:latest", alias="AGENT_IMAGE", description="Agent runtime container image"
    )
    agent_secret_name: str = Field(
        default="agent-llm-credentials",
        alias="AGENT_SECRET_NAME",
        description="Secret mounted into the agent Pod at the secrets path",
    )
    reconcile_interval_seconds: float = Field(
        default=5.0, gt=0, alias="RECONCILE_INTERVAL_SECONDS", description="Polling period of the controller loop"
    )
    kube_api_server: Optional[str] = Field(
        default=None, alias="KUBE_API_SERVER", description="Kubernetes API server URL (defaults to in-cluster)"
    )
    kube_token_path: str = Field(
        default="/var/run/secrets/kubernetes.io/serviceaccount/token",
        alias="KUBE_TOKEN_PATH",
        description="Bearer token file used to authenticate against the API server",
    )
    kube_ca_path: str = Field(
        default="/var/run/secrets/kubernetes.io/serviceaccount/ca.crt",
        alias="KUBE_CA_PATH",
        description="CA bundle used to verify the API server certificate",
    )
    log_level: str = Field(default="INFO", alias="AGENTRUN_LOG_LEVEL", description="Logging level")
