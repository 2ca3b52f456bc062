"""
Health check API endpoints.

Routes: GET /health, GET /llm/models, GET /discover

Dependencies: askrag.boundary.llm, askrag.core.model_discovery
System role: Health and backend discovery HTTP API
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import text

from askrag.api.deps import ServiceCache, get_service_cache
from askrag.boundary.llm import list_models
from askrag.core.exceptions import BackendUnavailableError
from askrag.core.model_discovery import provider_hint, recommend_models
from askrag.models.runtime_settings import normalize_base_url

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str
    chunks: int = 0
    llm_reachable: bool = False


class ModelsResponse(BaseModel):
    base_url: str
    provider_hint: str
    models: list[str]
    recommend_chat: list[str] = []
    recommend_embed: list[str] = []


class DiscoverCandidate(BaseModel):
    """One checked endpoint; models are only set when it answered."""

    base_url: str
    provider_hint: str
    ok: bool
    error: str | None = None
    models: list[str] = []
    recommend_chat: list[str] = []
    recommend_embed: list[str] = []


class DiscoverResponse(BaseModel):
    candidates: list[DiscoverCandidate]


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(cache: ServiceCache = Depends(get_service_cache)) -> HealthResponse:
    """Database and backend health; the service stays healthy without a backend."""
    try:
        async with cache.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        return HealthResponse(status="unhealthy", message=f"Database error: {str(e)}")
    chunks = await cache.chunk_store.count_all()
    reachable = await cache.llm.get().ping()
    return HealthResponse(
        status="healthy",
        message="Server Healthy",
        chunks=chunks,
        llm_reachable=reachable,
    )


@router.get("/llm/models", response_model=ModelsResponse)
async def llm_models(
    base_url: str | None = None,
    cache: ServiceCache = Depends(get_service_cache),
) -> ModelsResponse:
    """
    Models offered by the configured backend, or by base_url if given.

    Raises:
        HTTPException(502): Backend unreachable
    """
    client = cache.llm.get()
    url = base_url or client.base_url
    try:
        models = await list_models(url, cache.settings.llm.api_key, cache.settings.llm.models_timeout_seconds)
    except BackendUnavailableError as e:
        raise HTTPException(status_code=502, detail=e.message)
    chat, embed = recommend_models(models)
    return ModelsResponse(
        base_url=url,
        provider_hint=provider_hint(url),
        models=models,
        recommend_chat=chat,
        recommend_embed=embed,
    )


@router.get("/discover", response_model=DiscoverResponse)
async def discover(cache: ServiceCache = Depends(get_service_cache)) -> DiscoverResponse:
    """Check the usual local backend ports; unreachable ones are reported, not raised."""
    llm = cache.settings.llm

    async def check(base_url: str) -> DiscoverCandidate:
        base_url = normalize_base_url(base_url)
        candidate = DiscoverCandidate(base_url=base_url, provider_hint=provider_hint(base_url), ok=False)
        try:
            models = await list_models(base_url, llm.api_key, llm.models_timeout_seconds)
        except BackendUnavailableError as e:
            candidate.error = e.message
            return candidate
        chat, embed = recommend_models(models)
        candidate.ok = True
        candidate.models = models
        candidate.recommend_chat = chat
        candidate.recommend_embed = embed
        return candidate

    candidates = await asyncio.gather(*(check(url) for url in llm.discover_urls))
    logger.info(
        f"{__name__}:discover - Checked {len(candidates)} endpoints",
        extra={"reachable": sum(1 for c in candidates if c.ok)},
    )
    return DiscoverResponse(candidates=list(candidates))
