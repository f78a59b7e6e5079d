from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from app.core.exceptions import NotConfiguredError, StorageError

logger = logging.getLogger(__name__)


class SupabaseStorage:
    """Blob access for one Supabase Storage bucket over its REST API."""

    def __init__(
        self,
        base_url: str | None,
        service_key: str | None,
        bucket: str = "workflows",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.service_key = service_key or ""
        self.bucket = bucket
        self.timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.base_url and self.service_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }

    def _object_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(path)}"

    def _require_enabled(self) -> None:
        if not self.enabled:
            raise NotConfiguredError("Storage is not configured", status_code=500)

    async def upload(self, path: str, content: bytes, content_type: str = "application/json") -> str:
        self._require_enabled()
        headers = {**self._headers(), "Content-Type": content_type, "x-upsert": "false"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self._object_url(path), headers=headers, content=content)
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage upload failed: {exc}") from exc
        if response.status_code not in (200, 201):
            logger.error("Storage upload failed for %s: %s", path, response.text)
            raise StorageError(f"Storage upload failed: {response.status_code}")
        return path

    async def download(self, path: str) -> bytes:
        self._require_enabled()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self._object_url(path), headers=self._headers())
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage download failed: {exc}") from exc
        if response.status_code != 200:
            logger.error("Storage download failed for %s: %s", path, response.text)
            raise StorageError(f"Storage download failed: {response.status_code}")
        return response.content

    async def remove(self, paths: list[str]) -> None:
        self._require_enabled()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    "DELETE",
                    f"{self.base_url}/storage/v1/object/{self.bucket}",
                    headers=self._headers(),
                    json={"prefixes": paths},
                )
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage delete failed: {exc}") from exc
        if response.status_code not in (200, 204):
            logger.error("Storage delete failed for %s: %s", paths, response.text)
            raise StorageError(f"Storage delete failed: {response.status_code}")
