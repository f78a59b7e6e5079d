from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotConfiguredError, NotFoundError, StorageError, ValidationError
from app.integrations.storage import SupabaseStorage
from app.models import UserWorkflow

logger = logging.getLogger(__name__)


def parse_workflow_file(content: bytes) -> dict[str, Any]:
    """Decode an uploaded n8n export and check it has a nodes array."""
    try:
        data = json.loads(content)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError("Invalid JSON file format") from exc
    if not isinstance(data, dict) or not isinstance(data.get("nodes"), list):
        raise ValidationError("Invalid N8N workflow file: missing nodes array")
    return data


def build_storage_path(user_id: uuid.UUID, file_name: str) -> str:
    return f"{user_id}/{int(time.time() * 1000)}-{file_name}"


class LibraryService:
    """A user's uploaded workflow files: metadata rows plus blobs in storage."""

    def __init__(self, db: Session, storage: SupabaseStorage, max_upload_bytes: int | None = None):
        self.db = db
        self.storage = storage
        self.max_upload_bytes = max_upload_bytes

    async def upload(
        self,
        user_id: uuid.UUID,
        file_name: str,
        content: bytes,
        display_name: str,
        description: str = "",
    ) -> UserWorkflow:
        file_name = (file_name or "").strip()
        display_name = (display_name or "").strip()
        if not file_name or not display_name:
            raise ValidationError("File and display name are required")
        if not file_name.endswith(".json"):
            raise ValidationError("Only JSON files are allowed")
        if self.max_upload_bytes and len(content) > self.max_upload_bytes:
            raise ValidationError(f"File exceeds the {self.max_upload_bytes} byte limit")
        parse_workflow_file(content)

        storage_path = build_storage_path(user_id, file_name)
        await self.storage.upload(storage_path, content)

        entry = UserWorkflow(
            user_id=user_id,
            file_name=file_name,
            storage_path=storage_path,
            display_name=display_name,
            description=(description or "").strip(),
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Metadata insert failed for %s, removing uploaded blob", storage_path)
            try:
                await self.storage.remove([storage_path])
            except StorageError:
                logger.exception("Cleanup of orphaned blob %s failed", storage_path)
            raise StorageError("Failed to upload workflow") from exc
        self.db.refresh(entry)
        return entry

    def list(self, user_id: uuid.UUID) -> list[UserWorkflow]:
        return (
            self.db.query(UserWorkflow)
            .filter(UserWorkflow.user_id == user_id)
            .order_by(UserWorkflow.created_at.desc())
            .all()
        )

    def _entry(self, user_id: uuid.UUID, entry_id: uuid.UUID) -> UserWorkflow:
        entry = (
            self.db.query(UserWorkflow)
            .filter(UserWorkflow.id == entry_id, UserWorkflow.user_id == user_id)
            .first()
        )
        if entry is None:
            raise NotFoundError("Workflow not found")
        return entry

    async def get(self, user_id: uuid.UUID, entry_id: uuid.UUID) -> tuple[UserWorkflow, dict[str, Any]]:
        entry = self._entry(user_id, entry_id)
        content = await self.storage.download(entry.storage_path)
        try:
            return entry, parse_workflow_file(content)
        except ValidationError as exc:
            raise StorageError("Stored workflow file is corrupt") from exc

    async def delete(self, user_id: uuid.UUID, entry_id: uuid.UUID) -> None:
        entry = self._entry(user_id, entry_id)
        try:
            await self.storage.remove([entry.storage_path])
        except (StorageError, NotConfiguredError):
            # Row deletion still proceeds; the blob may be orphaned.
            logger.exception("Error deleting file %s from storage", entry.storage_path)

        try:
            self.db.delete(entry)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("Failed to delete workflow") from exc
