"""
Ask API endpoint.

Routes:
- POST /ask - Stream an answer using Server-Sent Events (SSE)

Dependencies: askrag.application.services.ask_service
System role: Streaming question-answering HTTP API
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from askrag.api.deps import ServiceCache, get_service_cache
from askrag.application.services.ask_service import AskService
from askrag.models.chat import AskRequest
from askrag.models.streaming import StreamEvent, StreamEventType

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ask"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


@router.post("/ask")
async def ask(
    request: AskRequest,
    cache: ServiceCache = Depends(get_service_cache),
) -> StreamingResponse:
    """
    Stream an answer using Server-Sent Events (SSE).

    SSE Format:
        event: meta
        data: {"chat_id": "...", "request_id": "...", ...}

        event: debug
        data: {"retrieval": {...}, ...}

        data: "token text"

        event: tool_request
        data: {"tool": "...", "query": "..."}

        event: tool_result
        data: {"tool": "...", "source": "...", "output": "..."}

        event: error
        data: {"code": "...", "message": "..."}

        data: [DONE]

    Args:
        request: AskRequest with question and mode flags
        cache: Injected service cache

    Returns:
        StreamingResponse: SSE stream of answer events
    """
    logger.info(f"{__name__}:ask - START chat_id={request.chat_id}")

    async def event_generator() -> AsyncGenerator[str, None]:
        """Generate SSE frames from the ask stream."""
        # The session lives as long as the stream, not the request handler
        async with cache.session_factory() as db:
            service = AskService(
                db=db,
                assembler=cache.assembler,
                knowledge=cache.knowledge,
                gate=cache.gate,
                llm=cache.llm,
                runtime=cache.runtime,
                settings=cache.settings,
            )
            try:
                async for event in service.stream_ask(request):
                    yield event.to_sse()
                logger.info(f"{__name__}:ask - Stream completed")

            except Exception as e:
                logger.exception(f"{__name__}:ask - {type(e).__name__}: {e}")
                error = StreamEvent(
                    event=StreamEventType.ERROR,
                    data={"code": "PROCESSING_ERROR", "message": str(e)},
                )
                yield error.to_sse()
                yield StreamEvent.done().to_sse()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
