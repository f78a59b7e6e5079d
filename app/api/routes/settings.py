"""
Per-user n8n credentials: read, save and connection test.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.dependencies import get_current_user, get_n8n_transport
from app.config import settings as app_settings
from app.core.exceptions import N8NError, NotConfiguredError, ValidationError
from app.database import get_db
from app.integrations.n8n import N8NClient
from app.schemas.settings import N8NSettingsPayload, N8NSettingsSchema
from app.services.settings_service import get_user_settings, save_user_settings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/settings")
async def read_settings(
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    row = get_user_settings(db, user["id"])
    if row is None:
        return {"settings": N8NSettingsSchema().model_dump()}
    return {
        "settings": N8NSettingsSchema(
            n8n_host=row.n8n_host or "",
            n8n_api_token=row.n8n_api_token or "",
        ).model_dump()
    }


@router.post("/settings")
async def write_settings(
    payload: N8NSettingsPayload,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        row = save_user_settings(db, user["id"], payload.n8n_host, payload.n8n_api_token)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc
    logger.info("Saved n8n settings for user %s", user["id"])
    return {"success": True, "settings": row.to_dict()}


@router.post("/settings/test")
async def test_settings(
    payload: N8NSettingsPayload,
    user: dict[str, Any] = Depends(get_current_user),
    transport: httpx.AsyncBaseTransport | None = Depends(get_n8n_transport),
) -> dict[str, Any]:
    """Try the supplied host and token against the workflows endpoint."""
    try:
        client = N8NClient(
            payload.n8n_host,
            payload.n8n_api_token,
            timeout=app_settings.n8n_timeout_seconds,
            transport=transport,
        )
        workflows = await client.list_workflows()
    except (NotConfiguredError, N8NError) as exc:
        logger.warning("N8N connection test failed: %s", exc.message)
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return {
        "success": True,
        "message": "Connection successful",
        "workflowCount": len(workflows),
    }
