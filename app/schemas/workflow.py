from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator


class InstallRequest(BaseModel):
    """Exactly one source: an inline workflow, a template URL or a library entry."""

    name: str | None = None
    workflow: dict[str, Any] | None = None
    workflow_url: str | None = Field(default=None, alias="workflowUrl")
    library_id: str | None = Field(default=None, alias="libraryId")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def check_single_source(self) -> "InstallRequest":
        sources = [s for s in (self.workflow, self.workflow_url, self.library_id) if s is not None]
        if len(sources) != 1:
            raise ValueError("Provide exactly one of workflow, workflowUrl or libraryId")
        return self


class FavoriteRequest(BaseModel):
    workflow_id: str = Field(alias="workflowId")
    is_favorite: bool = Field(alias="isFavorite")

    model_config = {"populate_by_name": True}
