"""Shared API dependencies."""
from __future__ import annotations

import httpx

from app.config import settings
from app.core.security import get_current_user, get_optional_user
from app.integrations.github import GitHubTemplateSource
from app.integrations.storage import SupabaseStorage


def get_template_source() -> GitHubTemplateSource:
    return GitHubTemplateSource(
        repo_url=settings.github_repo_url,
        token=settings.github_token.get_secret_value() if settings.github_token else None,
    )


def get_storage() -> SupabaseStorage:
    return SupabaseStorage(
        base_url=settings.supabase_url,
        service_key=settings.supabase_service_key.get_secret_value(),
        bucket=settings.storage_bucket,
    )


def get_n8n_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for n8n calls; None uses httpx's default network transport."""
    return None


__all__ = [
    "get_current_user",
    "get_optional_user",
    "get_template_source",
    "get_storage",
    "get_n8n_transport",
]
