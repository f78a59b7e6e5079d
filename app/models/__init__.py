"""
SQLAlchemy models for the workflow manager.
"""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Text, UniqueConstraint, Uuid
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class UserSettings(Base):
    __tablename__ = "user_settings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, unique=True, index=True)
    n8n_host = Column(Text)
    n8n_api_token = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self) -> dict:
        return {
            "n8n_host": self.n8n_host or "",
            "n8n_api_token": self.n8n_api_token or "",
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class UserWorkflow(Base):
    """A workflow file uploaded by a user; the JSON body lives in object storage."""

    __tablename__ = "workflows"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    file_name = Column(Text, nullable=False)
    storage_path = Column(Text, nullable=False, unique=True)
    display_name = Column(Text, nullable=False)
    description = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "file_name": self.file_name,
            "display_name": self.display_name,
            "description": self.description or "",
            "storage_path": self.storage_path,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Favourite(Base):
    __tablename__ = "favourite"
    __table_args__ = (UniqueConstraint("user_id", "workflow_id", name="uq_favourite_user_workflow"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    # Template path or library entry id, as sent by the dashboard.
    workflow_id = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


__all__ = ["Base", "UserSettings", "UserWorkflow", "Favourite"]
