from __future__ import annotations

"""Agent host: the process that runs inside the agent Pod.

``AgentHost.run`` wires the execution unit together and returns the process
exit code:

1. read the system prompt and the guardrail policy from the config volume
   (a missing policy falls back to ``DEFAULT_POLICY`` with a warning; a
   policy file that cannot be read fails the run);
2. compile the policy once through the evaluator;
3. register the built-in tools and build the LLM provider from the secrets
   volume;
4. run the ``AgentLoop`` under the configured deadline;
5. write ``result.json`` to the data volume.

The exit code is 0 only when the loop succeeded. ``result.json`` is written
on every exit path, best effort.
"""

import asyncio
import contextlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .agent.errors import PolicyCompileError
from .agent.loop import AgentLoop
from .agent.models import LoopResult
from .agent.opa import OPAEvaluator
from .agent.policy import DEFAULT_POLICY, PolicyEvaluator, PolicyGate
from .agent.provider import Provider
from .agent.result import save_result
from .agent.tools import ToolRegistry
from .core.settings import HostSettings
from .errors import AgentRunControllerError
from .kube.client import KubeClient
from .providers.anthropic import API_KEY_SECRET, AnthropicProvider
from .tools.definitions import TOOL_DEFINITIONS
from .tools.k8s import GetLogs, GetResources
from .tools.tekton import CreatePipelineRun

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_PATH = Path("prompts") / "system.txt"
POLICY_PATH = Path("guardrails") / "policy.rego"
POLICY_DATA_PATH = Path("guardrails") / "data.json"

EXIT_OK = 0
EXIT_FAILED = 1


class HostSetupError(AgentRunControllerError):
    """Raised when the execution unit cannot be set up (missing input, secret or provider)."""


def load_system_prompt(config_path: str | Path) -> str:
    path = Path(config_path) / SYSTEM_PROMPT_PATH
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise HostSetupError(f"failed to read system prompt: {e}") from e


def load_policy(config_path: str | Path) -> str:
    """
    Return the guardrail policy, or ``DEFAULT_POLICY`` when the file is missing.

    Raises:
        HostSetupError: If a policy file exists but cannot be read as UTF-8 text.
    """
    path = Path(config_path) / POLICY_PATH
    if not path.exists():
        logger.warning("No policy found at %s, using default permissive policy", path)
        return DEFAULT_POLICY
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise HostSetupError(f"failed to read policy {path}: {e}") from e


def load_policy_data(config_path: str | Path) -> Optional[Dict[str, Any]]:
    """Return the optional guardrail data document next to the policy."""
    path = Path(config_path) / POLICY_DATA_PATH
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise HostSetupError(f"invalid policy data {path}: {e}") from e
    if not isinstance(data, dict):
        raise HostSetupError(f"invalid policy data {path}: expected a JSON object")
    return data


def load_secret(secrets_path: str | Path, key: str) -> str:
    path = Path(secrets_path) / key
    try:
        return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        raise HostSetupError(f"failed to read secret {key}: {e}") from e


class AgentHost:
    """
    Run one agent execution from ``HostSettings``.

    Collaborators default to the real implementations; tests inject an
    ``evaluator``, a ``provider`` and a ``tools`` registry instead.
    """

    def __init__(
        self,
        settings: HostSettings,
        *,
        evaluator: Optional[PolicyEvaluator] = None,
        provider: Optional[Provider] = None,
        tools: Optional[ToolRegistry] = None,
    ) -> None:
        self.settings = settings
        self._evaluator = evaluator
        self._provider = provider
        self._tools = tools

    async def run(self) -> int:
        s = self.settings
        logger.info("Agent starting: run=%s/%s goal=%r", s.run_namespace, s.run_name, s.goal)
        logger.info(
            "Max iterations: %d, timeout: %ss, provider: %s", s.max_iterations, s.timeout_seconds, s.provider
        )
        async with contextlib.AsyncExitStack() as stack:
            try:
                loop = await self._setup(stack)
            except (HostSetupError, PolicyCompileError) as e:
                logger.error("Agent setup failed: %s", e)
                self._save(LoopResult(), error=str(e))
                return EXIT_FAILED
            except Exception as e:
                logger.exception("Unexpected error during agent setup")
                self._save(LoopResult(), error=str(e))
                return EXIT_FAILED

            deadline = asyncio.get_running_loop().time() + s.timeout_seconds
            logger.info("Starting agent execution...")
            try:
                result = await loop.run(deadline=deadline)
            except Exception as e:
                logger.exception("Agent execution aborted")
                self._save(LoopResult(), error=str(e))
                return EXIT_FAILED

        error = str(result.failure) if result.failure is not None else None
        self._save(result, error=error)
        logger.info(
            "Agent execution completed: status=%s iterations=%d tool_calls=%d tokens in=%d out=%d",
            result.status.value if result.status else None,
            result.iterations,
            len(result.tool_calls),
            result.tokens_in,
            result.tokens_out,
        )
        return EXIT_OK if result.succeeded else EXIT_FAILED

    async def _setup(self, stack: contextlib.AsyncExitStack) -> AgentLoop:
        s = self.settings
        if not s.goal:
            raise HostSetupError("goal is required (RUN_GOAL)")

        system_prompt = load_system_prompt(s.config_path)
        logger.info("System prompt loaded")

        evaluator = self._evaluator
        if evaluator is None:
            opa = OPAEvaluator(s.opa_url)
            stack.push_async_callback(opa.aclose)
            evaluator = opa
        gate = await PolicyGate.create(load_policy(s.config_path), load_policy_data(s.config_path), evaluator=evaluator)

        tools = self._tools
        if tools is None:
            tools = await self._default_tools(stack)
        logger.info("Tools registered: %s", ", ".join(tools.names()))

        provider = self._provider
        if provider is None:
            provider = self._default_provider(stack)

        return AgentLoop(
            provider=provider,
            tools=tools,
            gate=gate,
            goal=s.goal,
            system_prompt=system_prompt,
            max_iterations=s.max_iterations,
        )

    async def _default_tools(self, stack: contextlib.AsyncExitStack) -> ToolRegistry:
        s = self.settings
        try:
            if s.kube_api_server:
                kube = KubeClient(s.kube_api_server)
            else:
                kube = KubeClient.in_cluster()
        except (AgentRunControllerError, OSError) as e:
            raise HostSetupError(f"failed to build Kubernetes client: {e}") from e
        stack.push_async_callback(kube.aclose)

        registry = ToolRegistry()
        registry.register(GetResources(kube))
        registry.register(GetLogs(kube))
        registry.register(CreatePipelineRun(kube, run_name=s.run_name, run_uid=s.run_uid))
        return registry

    def _default_provider(self, stack: contextlib.AsyncExitStack) -> Provider:
        s = self.settings
        if s.provider != "claude":
            raise HostSetupError(f"Unsupported provider: {s.provider}")
        api_key = load_secret(s.secrets_path, API_KEY_SECRET)
        provider = AnthropicProvider(api_key, model=s.anthropic_model, tools=TOOL_DEFINITIONS)
        stack.push_async_callback(provider.aclose)
        logger.info("Claude provider initialized")
        return provider

    def _save(self, result: LoopResult, *, error: Optional[str]) -> None:
        try:
            save_result(self.settings.data_path, result, error=error)
        except OSError as e:
            logger.warning("Failed to save result: %s", e)
