"""Agent-facing tool layer."""

from .registry import Tool, ToolSession

__all__ = ["Tool", "ToolSession"]
