from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import get_current_user
from app.core.exceptions import ValidationError
from app.database import get_db
from app.schemas.workflow import FavoriteRequest
from app.services.favorites_service import list_favorites, set_favorite

router = APIRouter()


@router.get("/favorite")
async def get_favorites(
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return {"favorites": list_favorites(db, user["id"])}


@router.post("/favorite")
async def update_favorite(
    payload: FavoriteRequest,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        is_favorite = set_favorite(db, user["id"], payload.workflow_id, payload.is_favorite)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"success": True, "workflowId": payload.workflow_id, "isFavorite": is_favorite}
