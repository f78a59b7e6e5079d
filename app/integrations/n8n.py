from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.exceptions import N8NConnectionError, N8NError, NotConfiguredError

logger = logging.getLogger(__name__)

WORKFLOWS_PATH = "/api/v1/workflows"
CONNECTIVITY_MESSAGE = "Cannot connect to N8N host. Check your URL and network connectivity."


class N8NClient:
    """Thin client for the n8n public REST API. Every call is attempted once."""

    def __init__(
        self,
        host: str | None,
        api_key: str | None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        host = (host or "").strip()
        api_key = (api_key or "").strip()
        if not host or not api_key:
            raise NotConfiguredError("N8N host and API token are required")
        self.base_url = host.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "X-N8N-API-KEY": self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=self._headers(), json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("N8N request timed out: %s %s", method, url)
            raise N8NConnectionError(CONNECTIVITY_MESSAGE) from exc
        except httpx.TransportError as exc:
            logger.warning("N8N request failed: %s %s (%s)", method, url, exc)
            raise N8NConnectionError(CONNECTIVITY_MESSAGE) from exc

        if not response.is_success:
            raise self._status_error(response)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise N8NError("N8N API returned an invalid JSON response", response.status_code) from exc

    @staticmethod
    def _status_error(response: httpx.Response) -> N8NError:
        code = response.status_code
        if code == 401:
            return N8NError("Invalid API token", code)
        if code == 404:
            return N8NError("N8N API endpoint not found. Check your host URL.", code)
        logger.error("N8N API error %s: %s", code, response.text[:500])
        return N8NError(f"N8N API error: {code} {response.reason_phrase}".strip(), code)

    async def list_workflows(self) -> list[dict[str, Any]]:
        body = await self._request("GET", WORKFLOWS_PATH)
        if isinstance(body, list):
            return body
        return list(body.get("data") or [])

    async def create_workflow(self, payload: dict[str, Any]) -> str | None:
        body = await self._request("POST", WORKFLOWS_PATH, payload)
        workflow_id = body.get("id") or (body.get("data") or {}).get("id")
        return str(workflow_id) if workflow_id is not None else None

    async def update_workflow(self, workflow_id: str, payload: dict[str, Any]) -> bool:
        await self._request("PUT", f"{WORKFLOWS_PATH}/{workflow_id}", payload)
        return True
