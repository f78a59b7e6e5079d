from __future__ import annotations

from pydantic import BaseModel


class N8NSettingsPayload(BaseModel):
    n8n_host: str | None = None
    n8n_api_token: str | None = None


class N8NSettingsSchema(BaseModel):
    n8n_host: str = ""
    n8n_api_token: str = ""
