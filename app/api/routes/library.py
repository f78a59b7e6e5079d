"""
A user's uploaded workflow files ("My Workflows").
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from app.api.dependencies import get_current_user, get_storage
from app.config import settings
from app.core.exceptions import AppError, NotFoundError
from app.database import get_db
from app.integrations.storage import SupabaseStorage
from app.services.library_service import LibraryService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_library(
    db: Session = Depends(get_db),
    storage: SupabaseStorage = Depends(get_storage),
) -> LibraryService:
    return LibraryService(db, storage, max_upload_bytes=settings.max_upload_bytes)


def _parse_id(entry_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(entry_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Workflow not found") from exc


@router.get("/user")
async def list_user_workflows(
    library: LibraryService = Depends(get_library),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return {"workflows": [entry.to_dict() for entry in library.list(user["id"])]}


@router.post("/user/upload")
async def upload_user_workflow(
    file: UploadFile | None = File(default=None),
    display_name: str = Form(default="", alias="displayName"),
    description: str = Form(default=""),
    library: LibraryService = Depends(get_library),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    if file is None or not display_name.strip():
        raise HTTPException(status_code=400, detail="File and display name are required")

    content = await file.read()
    try:
        entry = await library.upload(
            user["id"],
            file_name=file.filename or "",
            content=content,
            display_name=display_name,
            description=description,
        )
    except AppError as exc:
        if exc.status_code >= 500:
            logger.error("Error uploading workflow: %s", exc.message)
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return {"success": True, "workflow": entry.to_dict()}


@router.get("/user/preview/{entry_id}")
async def preview_user_workflow(
    entry_id: str,
    library: LibraryService = Depends(get_library),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        _, workflow = await library.get(user["id"], _parse_id(entry_id))
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    except AppError as exc:
        logger.error("Error fetching workflow preview: %s", exc.message)
        raise HTTPException(status_code=500, detail="Failed to fetch workflow preview") from exc
    return {"workflow": workflow}


@router.delete("/user/{entry_id}")
async def delete_user_workflow(
    entry_id: str,
    library: LibraryService = Depends(get_library),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        await library.delete(user["id"], _parse_id(entry_id))
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    except AppError as exc:
        logger.error("Error deleting workflow: %s", exc.message)
        raise HTTPException(status_code=500, detail="Failed to delete workflow") from exc
    return {"success": True}
