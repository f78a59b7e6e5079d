"""Authentication helpers for Supabase-issued access tokens."""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import settings

ALGORITHM = "HS256"
TOKEN_TTL_MINUTES = 60
AUTH_SCHEME = HTTPBearer(auto_error=False)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _secret_key() -> str:
    return settings.supabase_jwt_secret.get_secret_value()


def create_access_token(user_id: str, email: str | None = None, extra: Dict[str, Any] | None = None) -> str:
    """Mint a token shaped like a Supabase session token (local runs and tests)."""
    payload: Dict[str, Any] = {
        "sub": user_id,
        "aud": settings.supabase_jwt_audience,
        "role": "authenticated",
        "iat": int(now_utc().timestamp()),
        "exp": int((now_utc() + timedelta(minutes=TOKEN_TTL_MINUTES)).timestamp()),
    }
    if email:
        payload["email"] = email
    if extra:
        payload.update(extra)
    return jwt.encode(payload, _secret_key(), algorithm=ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(
        token,
        _secret_key(),
        algorithms=[ALGORITHM],
        audience=settings.supabase_jwt_audience,
    )


def _user_from_token(token: str) -> Dict[str, Any]:
    if not _secret_key():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication is not configured"
        )
    try:
        payload = decode_token(token)
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token"
        )

    try:
        user_id = uuid.UUID(str(payload.get("sub", "")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject"
        )
    return {
        "id": user_id,
        "email": payload.get("email"),
    }


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(AUTH_SCHEME),
) -> Dict[str, Any]:
    if creds is None or not creds.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return _user_from_token(creds.credentials)


def get_optional_user(
    creds: HTTPAuthorizationCredentials | None = Depends(AUTH_SCHEME),
) -> Dict[str, Any] | None:
    """Like get_current_user, but anonymous or bad tokens resolve to None."""
    if creds is None or not creds.credentials:
        return None
    try:
        return _user_from_token(creds.credentials)
    except HTTPException:
        return None
