"""
Streaming event schemas for the ask pipeline.

Defines event types and payloads plus their Server-Sent Events encoding.

Dependencies: pydantic
System role: Streaming protocol schemas
"""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel

DONE_SENTINEL = "[DONE]"


class StreamEventType(str, Enum):
    """Server-to-client event types for streaming answers."""

    META = "meta"
    DEBUG = "debug"
    TOKEN = "token"
    TOOL_REQUEST = "tool_request"
    TOOL_RESULT = "tool_result"
    ERROR = "error"
    DONE = "done"


class StreamEvent(BaseModel):
    """
    Base streaming event model.

    Attributes:
        event: Event type identifier
        data: Event-specific payload (token events carry {"token": str})
    """

    event: StreamEventType
    data: dict[str, Any] = {}

    @classmethod
    def token(cls, text: str) -> "StreamEvent":
        return cls(event=StreamEventType.TOKEN, data={"token": text})

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls(event=StreamEventType.DONE)

    def to_sse(self) -> str:
        """
        Encode as a Server-Sent Events frame.

        Tokens are unnamed data frames holding a JSON string, completion is
        the bare [DONE] sentinel, everything else is a named event.
        """
        if self.event == StreamEventType.TOKEN:
            return f"data: {json.dumps(self.data.get('token', ''))}\n\n"
        if self.event == StreamEventType.DONE:
            return f"data: {DONE_SENTINEL}\n\n"
        return f"event: {self.event.value}\ndata: {json.dumps(self.data)}\n\n"
