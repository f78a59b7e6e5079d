"""Install workflow bodies (templates or library files) into an n8n instance."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from app.core.exceptions import IntegrationError, ValidationError
from app.integrations.n8n import N8NClient

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    workflow_id: str | None
    name: str
    tags_attached: bool = False

    def to_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "workflowId": self.workflow_id,
            "name": self.name,
            "tagsAttached": self.tags_attached,
            "message": "Workflow installed successfully",
        }


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if name.endswith(".json"):
        name = name[: -len(".json")]
    return name


def build_install_payload(workflow: dict[str, Any], fallback_name: str | None = None) -> dict[str, Any]:
    """Reduce an exported workflow to the fields n8n accepts on create.

    Server-assigned fields (id, versionId, createdAt, meta, pinData, ...) and
    tags are dropped. The workflow is never activated on install.
    """
    if not isinstance(workflow, dict):
        raise ValidationError("Workflow body must be a JSON object")
    nodes = workflow.get("nodes")
    if not isinstance(nodes, list):
        raise ValidationError("Invalid N8N workflow file: missing nodes array")

    name = _clean_name(workflow.get("name")) or _clean_name(fallback_name)
    if not name:
        raise ValidationError("Workflow name is required")

    settings: dict[str, Any] = {}
    source_settings = workflow.get("settings")
    if isinstance(source_settings, dict) and source_settings.get("timezone"):
        settings["timezone"] = source_settings["timezone"]

    return {
        "name": name,
        "nodes": nodes,
        "connections": workflow.get("connections") or {},
        "settings": settings,
        "active": False,
    }


def normalize_tags(tags: Any) -> list[dict[str, str]]:
    """Accept exported tag objects or plain strings; keep only named tags."""
    normalized: list[dict[str, str]] = []
    for tag in tags or []:
        if isinstance(tag, dict):
            entry = {k: str(tag[k]) for k in ("id", "name") if tag.get(k)}
            if entry.get("name"):
                normalized.append(entry)
        elif isinstance(tag, str) and tag.strip():
            normalized.append({"name": tag.strip()})
    return normalized


async def install_workflow(
    client: N8NClient,
    workflow: dict[str, Any],
    fallback_name: str | None = None,
) -> InstallResult:
    payload = build_install_payload(workflow, fallback_name)
    workflow_id = await client.create_workflow(payload)
    logger.info("Installed workflow %r as %s", payload["name"], workflow_id)

    result = InstallResult(workflow_id=workflow_id, name=payload["name"])
    tags = normalize_tags(workflow.get("tags"))
    if not tags or not workflow_id:
        return result

    try:
        await client.update_workflow(workflow_id, {**payload, "tags": tags})
        result.tags_attached = True
    except IntegrationError as exc:
        logger.warning("Workflow %s installed but tags were not attached: %s", workflow_id, exc)
    return result
