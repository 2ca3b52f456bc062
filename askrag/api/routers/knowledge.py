"""
Knowledge base API endpoints.

Routes:
- POST /search - Direct similarity search with neighbor stitching
- POST /add-text - Chunk, embed and store plain text
- GET /stats - Knowledge base statistics
- GET /sources - Articles with chunk counts
- POST /sources/delete - Remove an article

Dependencies: askrag.application.services.knowledge_service
System role: Knowledge base HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from askrag.api.deps import get_knowledge_service
from askrag.application.services.knowledge_service import KnowledgeService
from askrag.core.exceptions import BackendUnavailableError, ValidationError
from askrag.models.knowledge import (
    AddTextRequest,
    AddTextResponse,
    DeleteSourceRequest,
    DeleteSourceResponse,
    SearchRequest,
    SearchResponse,
    SourcesResponse,
    StatsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["knowledge"])


@router.post("/search", response_model=SearchResponse)
async def search(
    request: SearchRequest,
    knowledge: KnowledgeService = Depends(get_knowledge_service),
) -> SearchResponse:
    """
    Similarity search over stored chunks.

    Raises:
        HTTPException(502): Embedding backend unavailable
        HTTPException(500): Search failed
    """
    try:
        return await knowledge.search(request.query, request.k)
    except BackendUnavailableError as e:
        raise HTTPException(status_code=502, detail=e.message)
    except Exception as e:
        logger.error(f"{__name__}:search - {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail=f"Search failed: {str(e)}")


@router.post("/add-text", response_model=AddTextResponse)
async def add_text(
    request: AddTextRequest,
    knowledge: KnowledgeService = Depends(get_knowledge_service),
) -> AddTextResponse:
    """
    Store plain text under a title.

    Raises:
        HTTPException(400): Text has no content
        HTTPException(502): Embedding backend unavailable
        HTTPException(500): Ingestion failed
    """
    try:
        return await knowledge.add_text(request.text, request.title)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except BackendUnavailableError as e:
        raise HTTPException(status_code=502, detail=e.message)
    except Exception as e:
        logger.error(f"{__name__}:add_text - {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail=f"Ingestion failed: {str(e)}")


@router.get("/stats", response_model=StatsResponse)
async def stats(knowledge: KnowledgeService = Depends(get_knowledge_service)) -> StatsResponse:
    try:
        return await knowledge.stats()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to read stats: {str(e)}")


@router.get("/sources", response_model=SourcesResponse)
async def list_sources(knowledge: KnowledgeService = Depends(get_knowledge_service)) -> SourcesResponse:
    try:
        return SourcesResponse(sources=await knowledge.store.list_articles())
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to list sources: {str(e)}")


@router.post("/sources/delete", response_model=DeleteSourceResponse)
async def delete_source(
    request: DeleteSourceRequest,
    knowledge: KnowledgeService = Depends(get_knowledge_service),
) -> DeleteSourceResponse:
    """
    Remove every chunk of an article.

    Raises:
        HTTPException(404): Article not found
        HTTPException(500): Deletion failed
    """
    try:
        result = await knowledge.delete_source(request.article)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Deletion failed: {str(e)}")
    if result.deleted == 0:
        raise HTTPException(status_code=404, detail=f"Source not found: {request.article}")
    return result
