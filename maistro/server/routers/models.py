"""Model catalogue endpoints (RPC-style).

The API key is write-only: responses only report whether one is set.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from maistro.server.deps import Models, Switcher
from maistro.server.managers.models import ModelNotAvailableError
from maistro.server.models.api import ApiKeyUpdate, ModelRef, ModelSettingsResponse
from maistro.server.models.config import ModelSettings

router = APIRouter(prefix="/models", tags=["models"])


def _response(settings: ModelSettings, current_model: str | None = None) -> ModelSettingsResponse:
    return ModelSettingsResponse(
        default_model=settings.default_model,
        available_models=settings.available_models,
        has_api_key=bool(settings.api_key),
        current_model=current_model,
    )


@router.get("/get", response_model=ModelSettingsResponse, response_model_exclude_none=True)
async def get_models(models: Models, switcher: Switcher) -> ModelSettingsResponse:
    """Model settings plus the model the agent CLI is currently configured with."""
    return _response(await models.get_settings(), await switcher.current_model())


@router.post("/default", response_model=ModelSettingsResponse, response_model_exclude_none=True)
async def set_default_model(body: ModelRef, models: Models) -> ModelSettingsResponse:
    try:
        return _response(await models.set_default_model(body.model))
    except ModelNotAvailableError:
        raise HTTPException(
            status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Model '{body.model}' is not available."
        ) from None


@router.post("/add", response_model=ModelSettingsResponse, response_model_exclude_none=True)
async def add_model(body: ModelRef, models: Models) -> ModelSettingsResponse:
    try:
        return _response(await models.add_model(body.model))
    except ValueError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from None


@router.post("/remove", response_model=ModelSettingsResponse, response_model_exclude_none=True)
async def remove_model(body: ModelRef, models: Models) -> ModelSettingsResponse:
    try:
        return _response(await models.remove_model(body.model))
    except ModelNotAvailableError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Model '{body.model}' not found.") from None
    except ValueError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from None


@router.post("/api-key", status_code=status.HTTP_204_NO_CONTENT)
async def set_api_key(body: ApiKeyUpdate, models: Models) -> None:
    await models.set_api_key(body.api_key)
