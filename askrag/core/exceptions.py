"""
Exception hierarchy for the askrag service.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class AskRagException(Exception):
    """Base exception for all askrag errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(AskRagException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class ConversationNotFoundError(AskRagException):
    """Raised when a conversation cannot be found."""

    def __init__(self, chat_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["chat_id"] = chat_id
        super().__init__(f"Conversation not found: {chat_id}", details)


class BackendUnavailableError(AskRagException):
    """Raised when the embedding or completion backend fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize backend error.

        Args:
            message: Error message
            operation: Backend operation that failed (embed, chat, models)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class ChunkStoreError(AskRagException):
    """Raised when a chunk store insert or query fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class DecisionParseError(AskRagException):
    """Raised when the retrieval arbitration reply cannot be parsed."""


class ToolExecutionError(AskRagException):
    """Raised when a tool fails at runtime."""

    def __init__(
        self,
        message: str,
        tool: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize tool execution error.

        Args:
            message: Error message
            tool: Name of the failing tool
            details: Additional context
        """
        details = details or {}
        if tool:
            details["tool"] = tool
        super().__init__(message, details)


class UnknownToolError(ToolExecutionError):
    """Raised when a tool request names no registered tool."""

    def __init__(self, tool: str) -> None:
        super().__init__(f"Unknown tool: {tool}", tool=tool)


class ToolNotAllowedError(AskRagException):
    """Raised when execution policy denies a tool."""

    def __init__(self, tool: str) -> None:
        super().__init__(f"Tool '{tool}' is disabled by settings", {"tool": tool})
