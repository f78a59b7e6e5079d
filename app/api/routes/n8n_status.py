"""
Dashboard widgets for the user's n8n instance.

Both endpoints degrade to an empty payload with HTTP 200 on any failure so the
dashboard can always render them.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.dependencies import get_current_user, get_n8n_transport
from app.config import settings
from app.core.exceptions import N8NError
from app.database import get_db
from app.services.settings_service import resolve_n8n_client

logger = logging.getLogger(__name__)
router = APIRouter()

NOT_CONFIGURED = "N8N settings not configured"


@router.get("/n8n-status")
async def n8n_status(
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
    transport: httpx.AsyncBaseTransport | None = Depends(get_n8n_transport),
) -> dict[str, Any]:
    client = resolve_n8n_client(
        db, user["id"], timeout=settings.n8n_status_timeout_seconds, transport=transport
    )
    if client is None:
        return {"isConnected": False, "message": NOT_CONFIGURED}

    try:
        await client.list_workflows()
    except N8NError as exc:
        logger.warning("N8N status check failed: %s", exc.message)
        return {"isConnected": False, "message": exc.message}
    return {"isConnected": True, "message": "Connection successful"}


@router.get("/n8n-stats")
async def n8n_stats(
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
    transport: httpx.AsyncBaseTransport | None = Depends(get_n8n_transport),
) -> dict[str, Any]:
    client = resolve_n8n_client(
        db, user["id"], timeout=settings.n8n_timeout_seconds, transport=transport
    )
    if client is None:
        return {"totalWorkflows": 0, "activeWorkflows": 0, "message": NOT_CONFIGURED}

    try:
        workflows = await client.list_workflows()
    except N8NError as exc:
        logger.warning("Error fetching N8N stats: %s", exc.message)
        return {
            "totalWorkflows": 0,
            "activeWorkflows": 0,
            "message": f"Failed to fetch N8N workflows: {exc.message}",
        }

    return {
        "totalWorkflows": len(workflows),
        "activeWorkflows": sum(1 for wf in workflows if wf.get("active")),
        "message": "N8N stats fetched successfully",
    }
