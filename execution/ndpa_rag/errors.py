"""
Exception types for the NDPA agent.

A query that finds no section is not an error: the matcher returns the
"N/A" sentinel result instead of raising.
"""

from typing import Optional


class NdpaError(Exception):
    """Base class for NDPA agent errors."""


class LoadError(NdpaError):
    """Raised when the structured NDPA document is missing or malformed."""

    def __init__(self, message: str, location: Optional[str] = None):
        super().__init__(message)
        self.location = location


class ToolInputError(NdpaError):
    """Raised when a tool is called with a payload that fails its input schema."""

    def __init__(self, message: str, tool_id: str):
        super().__init__(message)
        self.tool_id = tool_id


class WorkflowError(NdpaError):
    """Raised when a workflow step cannot run."""

    def __init__(self, message: str, step_id: Optional[str] = None):
        super().__init__(message)
        self.step_id = step_id


class AgentError(NdpaError):
    """Raised when the agent cannot produce a response."""
