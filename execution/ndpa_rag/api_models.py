"""
Pydantic models for the NDPA agent FastAPI backend.

The A2A models mirror the task/message wire format field for field,
including explicit nulls, so they are dumped with model_dump() as-is.
"""

import uuid
from typing import Any, Literal, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field


def new_id() -> str:
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# =========================================================================
# A2A task / message models
# =========================================================================

class MessagePart(BaseModel):
    """A text or data part of a message or artifact."""
    kind: Literal["text", "data"]
    text: Optional[str] = None
    data: Any = None
    file_url: Optional[str] = None

    @classmethod
    def text_part(cls, text: str) -> "MessagePart":
        return cls(kind="text", text=text, data=None, file_url=None)

    @classmethod
    def data_part(cls, data: Any) -> "MessagePart":
        return cls(kind="data", text=None, data=data, file_url=None)


class A2AMessage(BaseModel):
    """A message in a task's status or history."""
    kind: Literal["message"] = "message"
    role: str
    parts: list[MessagePart]
    messageId: str = Field(default_factory=new_id)
    taskId: Optional[str] = None
    metadata: Optional[dict] = None


class TaskStatus(BaseModel):
    state: Literal["completed", "failed"]
    timestamp: str = Field(default_factory=utc_timestamp)
    message: A2AMessage


class Artifact(BaseModel):
    artifactId: str = Field(default_factory=new_id)
    name: str
    parts: list[MessagePart]


class TaskResult(BaseModel):
    """The task object returned in a JSON-RPC result."""
    id: str = Field(default_factory=new_id)
    contextId: str = Field(default_factory=new_id)
    status: TaskStatus
    artifacts: list[Artifact] = []
    history: list[dict] = []
    kind: Literal["task"] = "task"


class JsonRpcError(BaseModel):
    code: int
    message: str
    data: Optional[dict] = None


# JSON-RPC error codes used by the A2A route
INVALID_REQUEST = -32600
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


# =========================================================================
# REST models
# =========================================================================

class HealthResponse(BaseModel):
    """Response body for health check."""
    status: str
    version: str
    document: str
    sections: int = 0
    agents: list[str] = []


class ExplainRequest(BaseModel):
    """Request body for the retrieve-and-explain workflow."""
    question: str = Field(..., min_length=1, max_length=2000)


class ExplainResponse(BaseModel):
    """Response body for the retrieve-and-explain workflow."""
    part: str
    section_number: str
    summary: str
    explanation: str
    latency_ms: float
