"""
Runtime settings API endpoints.

Routes:
- GET /settings - Current runtime settings
- PUT /settings - Update runtime settings (swaps the LLM client if needed)
- GET /settings/apis - List template APIs
- POST /settings/apis - Register a template API
- DELETE /settings/apis/{api_id} - Remove a template API
- GET /personas - List personas
- POST /personas - Add a persona
- DELETE /personas/{persona_id} - Remove a persona

Dependencies: askrag.boundary.settings_store, askrag.boundary.llm
System role: Runtime configuration HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from askrag.api.deps import ServiceCache, get_runtime_store, get_service_cache
from askrag.boundary.settings_store import RuntimeSettingsStore
from askrag.core.exceptions import ValidationError
from askrag.models.runtime_settings import (
    CustomAPI,
    CustomAPICreate,
    Persona,
    PersonaCreate,
    RuntimeSettings,
    RuntimeSettingsUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["settings"])


@router.get("/settings", response_model=RuntimeSettings)
async def get_runtime_settings(
    runtime: RuntimeSettingsStore = Depends(get_runtime_store),
) -> RuntimeSettings:
    return runtime.get()


@router.put("/settings", response_model=RuntimeSettings)
async def update_runtime_settings(
    request: RuntimeSettingsUpdate,
    cache: ServiceCache = Depends(get_service_cache),
) -> RuntimeSettings:
    """
    Apply a partial settings update.

    Changing the endpoint or a model installs a new LLM client; requests
    already in flight keep the client they started with.

    Raises:
        HTTPException(400): Resulting settings are invalid
    """
    try:
        snapshot = cache.runtime.update(**request.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    if cache.llm.refresh(snapshot, cache.settings.llm):
        logger.info(f"{__name__}:update_runtime_settings - LLM client swapped")
    return snapshot


@router.get("/settings/apis", response_model=list[CustomAPI])
async def list_custom_apis(
    runtime: RuntimeSettingsStore = Depends(get_runtime_store),
) -> list[CustomAPI]:
    return list(runtime.get().custom_apis)


@router.post("/settings/apis", response_model=CustomAPI)
async def add_custom_api(
    request: CustomAPICreate,
    runtime: RuntimeSettingsStore = Depends(get_runtime_store),
) -> CustomAPI:
    try:
        return runtime.add_custom_api(request.name, request.template, request.desc)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.delete("/settings/apis/{api_id}", status_code=204)
async def delete_custom_api(
    api_id: str,
    runtime: RuntimeSettingsStore = Depends(get_runtime_store),
) -> None:
    if not runtime.remove_custom_api(api_id):
        raise HTTPException(status_code=404, detail=f"API not found: {api_id}")


@router.get("/personas", response_model=list[Persona])
async def list_personas(
    runtime: RuntimeSettingsStore = Depends(get_runtime_store),
) -> list[Persona]:
    return list(runtime.get().personas)


@router.post("/personas", response_model=Persona)
async def add_persona(
    request: PersonaCreate,
    runtime: RuntimeSettingsStore = Depends(get_runtime_store),
) -> Persona:
    try:
        return runtime.add_persona(request.name, request.prompt)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.delete("/personas/{persona_id}", status_code=204)
async def delete_persona(
    persona_id: str,
    runtime: RuntimeSettingsStore = Depends(get_runtime_store),
) -> None:
    """
    Remove a persona.

    Raises:
        HTTPException(400): The default persona cannot be removed
        HTTPException(404): Persona not found
    """
    try:
        removed = runtime.remove_persona(persona_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    if not removed:
        raise HTTPException(status_code=404, detail=f"Persona not found: {persona_id}")
