"""
Tool API endpoints.

Routes:
- GET /tools - Built-in tools and registered template APIs
- POST /tool/execute - Run a tool through the execution gate and store its output

Dependencies: askrag.application.services.tool_service
System role: Manual tool invocation HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from askrag.api.deps import get_tool_service
from askrag.application.services.tool_service import ToolService
from askrag.core.exceptions import ToolNotAllowedError
from askrag.models.tools import ToolExecuteRequest, ToolExecuteResponse, ToolSpec

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tools"])


@router.get("/tools", response_model=list[ToolSpec])
async def list_tools(tools: ToolService = Depends(get_tool_service)) -> list[ToolSpec]:
    return tools.list_tools()


@router.post("/tool/execute", response_model=ToolExecuteResponse)
async def execute_tool(
    request: ToolExecuteRequest,
    tools: ToolService = Depends(get_tool_service),
) -> ToolExecuteResponse:
    """
    Run a tool on demand.

    Runtime failures are reported in the outcome, not as HTTP errors.

    Raises:
        HTTPException(403): Tool disabled by settings
    """
    try:
        return await tools.execute(request.tool, request.query)
    except ToolNotAllowedError as e:
        raise HTTPException(status_code=403, detail=e.message)
