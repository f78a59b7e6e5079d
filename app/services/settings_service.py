from __future__ import annotations

import uuid

import httpx
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from app.config import settings
from app.core.exceptions import ValidationError
from app.integrations.n8n import N8NClient
from app.models import UserSettings


def get_user_settings(db: Session, user_id: uuid.UUID) -> UserSettings | None:
    return db.query(UserSettings).filter(UserSettings.user_id == user_id).first()


def save_user_settings(db: Session, user_id: uuid.UUID, host: str | None, token: str | None) -> UserSettings:
    """Create or overwrite the single credential record for a user."""
    host = (host or "").strip()
    token = (token or "").strip()
    if not host or not token:
        raise ValidationError("N8N host and API token are required")

    row = get_user_settings(db, user_id)
    if row is None:
        row = UserSettings(user_id=user_id)
        db.add(row)
    row.n8n_host = host
    row.n8n_api_token = token
    row.updated_at = func.now()
    db.commit()
    db.refresh(row)
    return row


def resolve_n8n_client(
    db: Session,
    user_id: uuid.UUID,
    *,
    allow_env_fallback: bool = False,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> N8NClient | None:
    """Build a client from the user's settings, or None when nothing is configured."""
    row = get_user_settings(db, user_id)
    host = row.n8n_host if row else None
    token = row.n8n_api_token if row else None

    if allow_env_fallback:
        host = host or settings.n8n_host_url
        token = token or (settings.n8n_api_key.get_secret_value() if settings.n8n_api_key else None)

    if not (host or "").strip() or not (token or "").strip():
        return None
    return N8NClient(
        host,
        token,
        timeout=timeout if timeout is not None else settings.n8n_timeout_seconds,
        transport=transport,
    )
