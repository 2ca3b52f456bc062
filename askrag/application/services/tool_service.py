"""
Tool service.

Manual tool invocation outside an answer stream. Successful outputs are
ingested exactly as they are during an ask request.

Dependencies: askrag.core.tools, askrag.application.services.knowledge_service
System role: Backing service for POST /api/tool/execute and GET /api/tools
"""

import logging
import secrets

from askrag.application.services.knowledge_service import KnowledgeService
from askrag.boundary.settings_store import RuntimeSettingsStore
from askrag.core.exceptions import AskRagException, ToolNotAllowedError
from askrag.core.tools.catalog import all_tools
from askrag.core.tools.gate import ToolGate
from askrag.models.tools import ToolExecuteResponse, ToolRequest, ToolSpec, ToolStatus

logger = logging.getLogger(__name__)


class ToolService:
    """Lists and runs tools on demand."""

    def __init__(self, gate: ToolGate, knowledge: KnowledgeService, runtime: RuntimeSettingsStore) -> None:
        self.gate = gate
        self.knowledge = knowledge
        self.runtime = runtime

    def list_tools(self) -> list[ToolSpec]:
        return all_tools(self.runtime.get())

    async def execute(self, tool: str, query: str) -> ToolExecuteResponse:
        """
        Run one tool and store its output.

        Args:
            tool: Tool name or template API id
            query: Tool argument

        Returns:
            ToolExecuteResponse: Outcome plus the article the output was
            stored under (None when nothing was stored)

        Raises:
            ToolNotAllowedError: If policy denies the tool
        """
        request_id = f"manual-{secrets.token_hex(4)}"
        outcome = await self.gate.execute(ToolRequest(tool=tool, query=query), self.runtime.get())
        if outcome.status == ToolStatus.DISALLOWED:
            raise ToolNotAllowedError(tool)
        if not outcome.ok:
            return ToolExecuteResponse(outcome=outcome)

        try:
            article, chunks = await self.knowledge.ingest_tool_result(outcome, request_id)
        except AskRagException as e:
            logger.warning(f"{__name__}:execute - Tool result not stored: {e}")
            return ToolExecuteResponse(outcome=outcome)
        return ToolExecuteResponse(outcome=outcome, article=article, chunks=chunks)
