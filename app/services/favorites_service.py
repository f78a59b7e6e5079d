from __future__ import annotations

import uuid

from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.models import Favourite


def list_favorites(db: Session, user_id: uuid.UUID) -> list[str]:
    rows = (
        db.query(Favourite)
        .filter(Favourite.user_id == user_id)
        .order_by(Favourite.created_at.desc())
        .all()
    )
    return [row.workflow_id for row in rows]


def set_favorite(db: Session, user_id: uuid.UUID, workflow_id: str, is_favorite: bool) -> bool:
    """Add or remove a favourite. Repeating either call is a no-op."""
    workflow_id = (workflow_id or "").strip()
    if not workflow_id:
        raise ValidationError("workflowId is required")

    existing = (
        db.query(Favourite)
        .filter(Favourite.user_id == user_id, Favourite.workflow_id == workflow_id)
        .first()
    )
    if is_favorite and existing is None:
        db.add(Favourite(user_id=user_id, workflow_id=workflow_id))
        db.commit()
    elif not is_favorite and existing is not None:
        db.delete(existing)
        db.commit()
    return is_favorite
