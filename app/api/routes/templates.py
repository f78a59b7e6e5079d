"""
Workflow templates from the configured GitHub repository.
"""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.dependencies import get_optional_user, get_template_source
from app.core.exceptions import TemplateSourceError
from app.database import get_db
from app.integrations.github import GitHubTemplateSource
from app.services.catalog import (
    SORT_KEYS,
    FilterCriteria,
    facet_values,
    filter_templates,
    sort_templates,
    summarize_template,
)
from app.services.favorites_service import list_favorites

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/github")
async def list_github_workflows(
    source: GitHubTemplateSource = Depends(get_template_source),
) -> dict[str, Any]:
    try:
        templates = await source.list_templates()
    except TemplateSourceError as exc:
        logger.error("Error fetching GitHub workflows: %s", exc.message)
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return {"workflows": [ref.to_dict() for ref in templates]}


@router.get("/templates")
async def browse_templates(
    search: str = "",
    trigger: list[str] = Query(default=[]),
    category: list[str] = Query(default=[]),
    complexity: list[str] = Query(default=[]),
    tag: list[str] = Query(default=[]),
    min_nodes: int | None = Query(default=None, ge=0),
    max_nodes: int | None = Query(default=None, ge=0),
    active_only: bool = False,
    sort: str = "name",
    order: str | None = Query(default=None, pattern="^(asc|desc)$"),
    source: GitHubTemplateSource = Depends(get_template_source),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    """Fetch every template body, classify, then filter and sort for the list page."""
    if sort not in SORT_KEYS:
        raise HTTPException(status_code=400, detail=f"sort must be one of: {', '.join(SORT_KEYS)}")

    try:
        refs = await source.list_templates(include_content=True)
    except TemplateSourceError as exc:
        logger.error("Error fetching GitHub workflows: %s", exc.message)
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    summaries = [summarize_template(ref) for ref in refs]
    if user is not None:
        favorites = set(list_favorites(db, user["id"]))
        for item in summaries:
            item.is_favorite = item.path in favorites or item.name in favorites

    criteria = FilterCriteria(
        search=search,
        triggers=trigger,
        categories=category,
        complexities=complexity,
        tags=tag,
        min_nodes=min_nodes,
        max_nodes=max_nodes,
        active_only=active_only,
    )
    descending = None if order is None else order == "desc"
    visible = sort_templates(filter_templates(summaries, criteria), sort, descending)
    return {
        "workflows": [item.to_dict() for item in visible],
        "total": len(visible),
        "filters": facet_values(summaries),
    }


@router.get("/preview")
async def preview_workflow(
    url: str | None = None,
    source: GitHubTemplateSource = Depends(get_template_source),
) -> dict[str, Any]:
    if not url:
        raise HTTPException(status_code=400, detail="Workflow URL is required")
    if urlparse(url).scheme not in ("http", "https"):
        raise HTTPException(status_code=400, detail="Workflow URL must be http or https")
    try:
        workflow = await source.fetch_workflow(url)
    except TemplateSourceError as exc:
        logger.error("Error fetching workflow preview: %s", exc.message)
        raise HTTPException(status_code=500, detail="Failed to fetch workflow preview") from exc
    return {"workflow": workflow}
