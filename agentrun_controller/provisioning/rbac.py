from __future__ import annotations

"""Read-only RBAC for the agent Pod.

Each ``AgentRun`` gets its own ``Role`` and ``RoleBinding`` named
``agentrun-<run>``, owned by the run. The Role only grants the read verbs
``get``, ``list`` and ``watch``; ``assert_read_only`` enforces that on every
generated Role.
"""

from typing import Iterable, List

from ..apis.agentconfig import AgentConfig
from ..apis.agentrun import AgentRun
from ..kube.models import ObjectMeta, PolicyRule, Role, RoleBinding, RoleRef, Subject
from .labels import COMPONENT_RBAC, LABEL_AGENTRUN, LABEL_COMPONENT, LABEL_MANAGED_BY, MANAGED_BY

READ_ONLY_VERBS = frozenset({"get", "list", "watch"})
_VERBS = ["get", "list", "watch"]


def role_name(run: AgentRun) -> str:
    return f"agentrun-{run.name}"


def role_binding_name(run: AgentRun) -> str:
    return f"agentrun-{run.name}"


def _labels(run: AgentRun) -> dict[str, str]:
    return {
        LABEL_AGENTRUN: run.name,
        LABEL_COMPONENT: COMPONENT_RBAC,
        LABEL_MANAGED_BY: MANAGED_BY,
    }


def assert_read_only(rules: Iterable[PolicyRule]) -> None:
    """
    Reject any rule granting a verb outside ``READ_ONLY_VERBS``.

    Raises:
        ValueError: If a rule grants a write verb or the ``*`` wildcard.
    """
    for rule in rules:
        extra = set(rule.verbs) - READ_ONLY_VERBS
        if extra:
            raise ValueError(f"role rule for {rule.resources} grants non read-only verbs: {sorted(extra)}")


def generate_role(run: AgentRun) -> Role:
    """Build the read-only Role for ``run``."""
    rules: List[PolicyRule] = [
        PolicyRule(api_groups=[""], resources=["pods", "services", "endpoints"], verbs=list(_VERBS)),
        PolicyRule(
            api_groups=["apps"],
            resources=["deployments", "replicasets", "statefulsets", "daemonsets"],
            verbs=list(_VERBS),
        ),
        PolicyRule(api_groups=[""], resources=["events"], verbs=list(_VERBS)),
    ]
    assert_read_only(rules)
    return Role(
        metadata=ObjectMeta(
            name=role_name(run),
            namespace=run.namespace,
            labels=_labels(run),
            owner_references=[run.owner_reference()],
        ),
        rules=rules,
    )


def generate_role_binding(run: AgentRun, config: AgentConfig, role: str) -> RoleBinding:
    """Bind ``role`` to the profile's service account in the run's namespace."""
    return RoleBinding(
        metadata=ObjectMeta(
            name=role_binding_name(run),
            namespace=run.namespace,
            labels=_labels(run),
            owner_references=[run.owner_reference()],
        ),
        role_ref=RoleRef(name=role),
        subjects=[Subject(name=config.service_account, namespace=run.namespace)],
    )
