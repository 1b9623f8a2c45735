"""Configuration and folder endpoints (RPC-style).

All write operations use POST; reads use GET.  Thin HTTP adapter --
delegates to ``ConfigManager`` and keeps the crontab in step with
schedules.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from maistro.server.deps import Configs, Crontab
from maistro.server.managers.configs import (
    ConfigurationNotFoundError,
    DuplicateConfigurationError,
)
from maistro.server.models.api import ConfigCreate, ConfigMove, ConfigUpdate, Folder, FolderDelete, FolderRename
from maistro.server.models.config import Configuration

router = APIRouter(prefix="/configs", tags=["configs"])


def _not_found(config_id: str) -> HTTPException:
    return HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Configuration '{config_id}' not found.")


# -- Folders -------------------------------------------------------------------


@router.get("/folders/list", response_model=list[Folder])
async def list_folders(configs: Configs) -> list[Folder]:
    """List virtual folders derived from configuration paths."""
    return await configs.list_folders()


@router.post("/folders/rename")
async def rename_folder(body: FolderRename, configs: Configs) -> dict[str, int]:
    """Move every configuration under ``oldPath`` to ``newPath``."""
    moved = await configs.rename_folder(body.old_path, body.new_path)
    return {"moved": moved}


@router.post("/folders/delete")
async def delete_folder(body: FolderDelete, configs: Configs) -> dict[str, int]:
    """Delete a folder; its configurations move to the parent folder."""
    moved = await configs.delete_folder(body.path)
    return {"moved": moved}


# -- Configurations ------------------------------------------------------------


@router.get("/list", response_model=list[Configuration])
async def list_configs(
    configs: Configs,
    folder: str | None = Query(None, description="Only configurations directly in this folder."),
) -> list[Configuration]:
    return await configs.list_configs(folder)


@router.post("/create", response_model=Configuration, status_code=status.HTTP_201_CREATED)
async def create_config(body: ConfigCreate, configs: Configs, crontab: Crontab) -> Configuration:
    """Create a configuration.  The ID is generated when omitted."""
    try:
        config = await configs.create_config(body)
    except DuplicateConfigurationError:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=f"Configuration '{body.id}' already exists.") from None
    except ValueError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from None
    await crontab.sync(config)
    return config


@router.get("/{config_id}/get", response_model=Configuration)
async def get_config(config_id: str, configs: Configs) -> Configuration:
    try:
        return await configs.get_config(config_id)
    except ConfigurationNotFoundError:
        raise _not_found(config_id) from None


@router.post("/{config_id}/update", response_model=Configuration)
async def update_config(config_id: str, body: ConfigUpdate, configs: Configs, crontab: Crontab) -> Configuration:
    """Partially update a configuration; only fields present in the body change."""
    try:
        config = await configs.update_config(config_id, body.model_dump(exclude_unset=True))
    except ConfigurationNotFoundError:
        raise _not_found(config_id) from None
    except ValueError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from None
    await crontab.sync(config)
    return config


@router.post("/{config_id}/delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_config(config_id: str, configs: Configs, crontab: Crontab) -> None:
    if not await configs.delete_config(config_id):
        raise _not_found(config_id)
    await crontab.remove(config_id)


@router.post("/{config_id}/move", response_model=Configuration)
async def move_config(config_id: str, body: ConfigMove, configs: Configs) -> Configuration:
    """Move a configuration into ``folderPath`` (empty string for the root)."""
    try:
        return await configs.move_config(config_id, body.folder_path)
    except ConfigurationNotFoundError:
        raise _not_found(config_id) from None
