"""
Tool protocol schemas.

Dependencies: pydantic
System role: Tool catalog, request and outcome contracts
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ToolSpec(BaseModel):
    """Tool entry as advertised to the model and the API."""

    name: str
    description: str
    param_hint: str
    builtin: bool = True


class ToolRequest(BaseModel):
    """A tool call extracted from generated text."""

    tool: str = Field(min_length=1)
    query: str = ""


class ToolStatus(str, Enum):
    """Outcome kinds of a tool invocation."""

    SUCCESS = "success"
    FAILED = "failed"
    DISALLOWED = "disallowed"


class ToolOutcome(BaseModel):
    """Result of passing a request through the execution gate."""

    status: ToolStatus
    tool: str
    query: str
    source: str | None = None
    output: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == ToolStatus.SUCCESS

    def to_event_data(self) -> dict[str, Any]:
        """Payload for the tool_result stream event."""
        data: dict[str, Any] = {"tool": self.tool, "query": self.query}
        if self.status == ToolStatus.DISALLOWED:
            data["allowed"] = False
        elif self.status == ToolStatus.FAILED:
            data["error"] = self.error
        else:
            data["source"] = self.source
            data["output"] = self.output
        return data


class ToolExecuteRequest(BaseModel):
    """Request schema for manual tool execution."""

    tool: str = Field(min_length=1, description="Tool name or template API id")
    query: str = Field(min_length=1, description="Query passed to the tool")


class ToolExecuteResponse(BaseModel):
    """Response schema for manual tool execution."""

    outcome: ToolOutcome
    article: str | None = None
    chunks: int = 0
