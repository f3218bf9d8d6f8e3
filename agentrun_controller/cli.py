"""agentrun CLI entry point.

Two commands, one per process:

- ``agentrun controller``: the reconciliation controller.
- ``agentrun agent``: the agent host inside the agent Pod.

Every option overrides the matching environment setting.
"""

import asyncio
import logging
import signal
from typing import Any, Dict, Optional

import typer

from .core.logging_config import setup_logging
from .core.settings import ControllerSettings, HostSettings

app = typer.Typer(
    name="agentrun",
    help="Run LLM agents in Kubernetes behind a fail-closed policy gate",
    add_completion=False,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


def _overrides(**values: Any) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


@app.command()
def controller(
    image: Optional[str] = typer.Option(None, "--image", help="Agent runtime image (AGENT_IMAGE)"),
    secret_name: Optional[str] = typer.Option(
        None, "--secret-name", help="Secret mounted at the secrets path (AGENT_SECRET_NAME)"
    ),
    interval: Optional[float] = typer.Option(
        None, "--interval", help="Reconcile interval in seconds (RECONCILE_INTERVAL_SECONDS)"
    ),
    api_server: Optional[str] = typer.Option(None, "--api-server", help="Kubernetes API server URL"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
):
    """Run the AgentRun reconciliation controller until SIGINT/SIGTERM."""
    settings = ControllerSettings(
        **_overrides(
            agent_image=image,
            agent_secret_name=secret_name,
            reconcile_interval_seconds=interval,
            kube_api_server=api_server,
            log_level=log_level,
        )
    )
    setup_logging(log_level=settings.log_level)
    asyncio.run(_run_controller(settings))


async def _run_controller(settings: ControllerSettings) -> None:
    from .controller import Controller
    from .kube.client import KubeClient
    from .provisioning.pod import PodBuilder
    from .reconciler.agentrun import Reconciler

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    if settings.kube_api_server:
        client = KubeClient(settings.kube_api_server)
    else:
        client = KubeClient.in_cluster(token_path=settings.kube_token_path, ca_path=settings.kube_ca_path)
    async with client:
        reconciler = Reconciler(
            client=client,
            pod_builder=PodBuilder(settings.agent_image, secret_name=settings.agent_secret_name),
        )
        ctrl = Controller(client=client, reconciler=reconciler, interval=settings.reconcile_interval_seconds)
        await ctrl.run(stop)


@app.command()
def agent(
    max_iterations: Optional[int] = typer.Option(
        None, "--max-iterations", min=1, max=10, help="Maximum plan-act-reflect iterations"
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Overall deadline in seconds"),
    goal: Optional[str] = typer.Option(None, "--goal", help="Goal for the agent (RUN_GOAL)"),
    provider: Optional[str] = typer.Option(None, "--provider", help="LLM provider (LLM_PROVIDER)"),
    config_path: Optional[str] = typer.Option(None, "--config-path", help="Path to the config volume"),
    data_path: Optional[str] = typer.Option(None, "--data-path", help="Path to the data volume"),
    secrets_path: Optional[str] = typer.Option(None, "--secrets-path", help="Path to the secrets volume"),
    opa_url: Optional[str] = typer.Option(None, "--opa-url", help="OPA server URL"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
):
    """Run the agent host once and exit with its status."""
    settings = HostSettings(
        **_overrides(
            max_iterations=max_iterations,
            timeout_seconds=timeout,
            goal=goal,
            provider=provider,
            config_path=config_path,
            data_path=data_path,
            secrets_path=secrets_path,
            opa_url=opa_url,
            log_level=log_level,
        )
    )
    setup_logging(log_level=settings.log_level)

    from .host import AgentHost

    code = asyncio.run(AgentHost(settings).run())
    raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
