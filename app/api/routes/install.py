"""
Install workflows into the user's n8n instance and list what is installed there.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.dependencies import get_current_user, get_n8n_transport, get_storage, get_template_source
from app.config import settings
from app.core.exceptions import AppError, N8NError
from app.database import get_db
from app.integrations.github import GitHubTemplateSource
from app.integrations.storage import SupabaseStorage
from app.schemas.workflow import InstallRequest
from app.services.installer import install_workflow
from app.services.library_service import LibraryService
from app.services.settings_service import resolve_n8n_client

logger = logging.getLogger(__name__)
router = APIRouter()


async def _resolve_workflow(
    payload: InstallRequest,
    user_id: uuid.UUID,
    db: Session,
    source: GitHubTemplateSource,
    storage: SupabaseStorage,
) -> tuple[dict[str, Any], str | None]:
    """Return the workflow body to install and a fallback name for it."""
    if payload.workflow is not None:
        return payload.workflow, payload.name
    if payload.workflow_url is not None:
        return await source.fetch_workflow(payload.workflow_url), payload.name

    try:
        entry_id = uuid.UUID(str(payload.library_id))
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Workflow not found") from exc
    entry, workflow = await LibraryService(db, storage).get(user_id, entry_id)
    return workflow, payload.name or entry.display_name


@router.post("/install")
async def install(
    payload: InstallRequest,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
    source: GitHubTemplateSource = Depends(get_template_source),
    storage: SupabaseStorage = Depends(get_storage),
    transport: httpx.AsyncBaseTransport | None = Depends(get_n8n_transport),
) -> dict[str, Any]:
    client = resolve_n8n_client(db, user["id"], transport=transport)
    if client is None:
        raise HTTPException(
            status_code=400,
            detail="N8N configuration not found. Please configure your N8N settings first.",
        )

    try:
        workflow, fallback_name = await _resolve_workflow(payload, user["id"], db, source, storage)
        result = await install_workflow(client, workflow, fallback_name)
    except AppError as exc:
        logger.error("Error installing workflow: %s", exc.message)
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return result.to_response()


@router.get("/installed")
async def list_installed(
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
    transport: httpx.AsyncBaseTransport | None = Depends(get_n8n_transport),
) -> dict[str, Any]:
    client = resolve_n8n_client(
        db,
        user["id"],
        allow_env_fallback=True,
        timeout=settings.n8n_timeout_seconds,
        transport=transport,
    )
    if client is None:
        raise HTTPException(
            status_code=400,
            detail=(
                "N8N host and API key are required. "
                "Please configure them in settings or environment variables."
            ),
        )

    try:
        installed = await client.list_workflows()
    except N8NError as exc:
        logger.error("Error fetching installed workflows: %s", exc.message)
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return {"success": True, "installedWorkflows": installed}
