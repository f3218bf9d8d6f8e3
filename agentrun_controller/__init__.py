"""agentrun-controller.

This package runs autonomous LLM-driven agents inside a Kubernetes cluster to
accomplish operator-declared goals under strict authorization guardrails.

High-level architecture
-----------------------

The codebase is organized around two coupled control loops:

- **Reconciliation**: the controller drives an ``AgentRun`` through the
  ``Pending -> Acting -> Succeeded|Failed`` state machine, provisioning a
  read-only Role, a RoleBinding and a hardened agent Pod along the way.
- **Agent execution**: inside the Pod, the agent host runs a bounded
  plan/act/reflect conversation between an LLM provider and a set of tools.
  Every tool call passes a fail-closed policy gate first.

Core subpackages
----------------

- ``agentrun_controller.apis``: ``AgentRun`` / ``AgentConfig`` schemas,
  defaulting and validation.
- ``agentrun_controller.agent``: the execution loop, policy gate, tool
  registry and result artifact.
- ``agentrun_controller.provisioning``: Role, RoleBinding and Pod builders.
- ``agentrun_controller.reconciler``: the per-run state machine and the
  ``AgentConfig`` cache.
- ``agentrun_controller.kube``: typed manifests and an async REST client for
  the Kubernetes API.
- ``agentrun_controller.providers`` / ``agentrun_controller.tools``: concrete
  LLM provider and tool implementations used by the agent host.
"""

__version__ = "0.1.0"
