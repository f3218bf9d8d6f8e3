from __future__ import annotations

"""Model-facing definitions of the built-in tools.

Each ``ToolDefinition`` advertises a tool's name, description and JSON
Schema input to the LLM provider. Names match the ``name`` attribute of the
implementations in ``k8s`` and ``tekton``.
"""

from typing import Any, Dict, List

from pydantic import Field

from ..apis.base import BaseSchema


class ToolDefinition(BaseSchema):
    name: str
    description: str
    input_schema: Dict[str, Any] = Field(default_factory=dict)


GET_RESOURCES = ToolDefinition(
    name="k8s_get_resources",
    description="List Kubernetes resources like pods, deployments, services, or replicasets in a namespace",
    input_schema={
        "type": "object",
        "properties": {
            "namespace": {"type": "string", "description": "Kubernetes namespace to query"},
            "resourceType": {
                "type": "string",
                "description": "Type of resource: pods, deployments, services, or replicasets",
            },
            "labelSelector": {"type": "string", "description": "Optional label selector to filter resources"},
            "limit": {"type": "number", "description": "Maximum number of resources to return (default 100)"},
        },
        "required": ["namespace", "resourceType"],
    },
)

GET_LOGS = ToolDefinition(
    name="k8s_get_logs",
    description="Fetch logs from a Kubernetes pod",
    input_schema={
        "type": "object",
        "properties": {
            "namespace": {"type": "string", "description": "Kubernetes namespace"},
            "pod": {"type": "string", "description": "Pod name"},
            "container": {
                "type": "string",
                "description": "Container name (optional, required for multi-container pods)",
            },
            "tailLines": {"type": "number", "description": "Number of lines to tail (max 500)"},
            "sinceSeconds": {
                "type": "number",
                "description": "Return logs newer than this duration in seconds (max 900)",
            },
        },
        "required": ["namespace", "pod"],
    },
)

CREATE_PIPELINERUN = ToolDefinition(
    name="tekton_create_pipelinerun",
    description="Create a Tekton PipelineRun to execute a Pipeline with specific parameters",
    input_schema={
        "type": "object",
        "properties": {
            "namespace": {
                "type": "string",
                "description": "Kubernetes namespace where the PipelineRun will be created",
            },
            "name": {"type": "string", "description": "Name for the PipelineRun (should be unique and descriptive)"},
            "pipelineName": {"type": "string", "description": "Name of the existing Pipeline to run"},
            "params": {
                "type": "array",
                "description": "Array of parameter objects with name and value fields",
                "items": {
                    "type": "object",
                    "properties": {"name": {"type": "string"}, "value": {"type": "string"}},
                    "required": ["name", "value"],
                },
            },
            "workspaces": {
                "type": "array",
                "description": "Array of workspace bindings",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "pvcName": {"type": "string"},
                        "emptyDir": {"type": "boolean"},
                    },
                    "required": ["name"],
                },
            },
        },
        "required": ["namespace", "name", "pipelineName"],
    },
)

TOOL_DEFINITIONS: List[ToolDefinition] = [GET_RESOURCES, GET_LOGS, CREATE_PIPELINERUN]
