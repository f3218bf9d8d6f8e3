"""Built-in tools available to the agent."""

from .definitions import TOOL_DEFINITIONS, ToolDefinition
from .k8s import GetLogs, GetResources
from .tekton import CreatePipelineRun

__all__ = ["CreatePipelineRun", "GetLogs", "GetResources", "TOOL_DEFINITIONS", "ToolDefinition"]
