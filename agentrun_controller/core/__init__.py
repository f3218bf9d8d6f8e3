"""
Core utilities and configuration for agentrun-controller.

This package provides logging configuration and environment-bound settings
shared by the controller and the agent host.
"""

from agentrun_controller.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
