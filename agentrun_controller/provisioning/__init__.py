"""Derived objects created for each ``AgentRun``: read-only RBAC and the agent Pod."""

from .pod import PodBuilder, pod_name
from .rbac import (
    READ_ONLY_VERBS,
    assert_read_only,
    generate_role,
    generate_role_binding,
    role_binding_name,
    role_name,
)

__all__ = [
    "PodBuilder",
    "READ_ONLY_VERBS",
    "assert_read_only",
    "generate_role",
    "generate_role_binding",
    "pod_name",
    "role_binding_name",
    "role_name",
]
