"""Label keys and values stamped on every object the controller creates."""

LABEL_AGENTRUN = "agent.tekton.dev/agentrun"
LABEL_CONFIG = "agent.tekton.dev/config"
LABEL_COMPONENT = "app.kubernetes.io/component"
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"

COMPONENT_RBAC = "agent-rbac"
COMPONENT_RUNTIME = "agent-runtime"
MANAGED_BY = "agentrun-controller"
