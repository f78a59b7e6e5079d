from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

import httpx

from app.core.exceptions import TemplateSourceError

logger = logging.getLogger(__name__)

GITHUB_HOSTS = frozenset({"api.github.com", "raw.githubusercontent.com"})


@dataclass
class TemplateRef:
    name: str
    path: str
    sha: str
    download_url: str
    content: dict[str, Any] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        data = {
            "name": self.name,
            "path": self.path,
            "sha": self.sha,
            "download_url": self.download_url,
        }
        if self.content is not None:
            data["content"] = self.content
        return data


class GitHubTemplateSource:
    """Lists workflow JSON files from a GitHub contents API directory."""

    def __init__(
        self,
        repo_url: str | None,
        token: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.repo_url = (repo_url or "").strip()
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _trusted_hosts(self) -> set[str]:
        hosts = set(GITHUB_HOSTS)
        repo_host = urlparse(self.repo_url).hostname
        if repo_host:
            hosts.add(repo_host.lower())
        return hosts

    def _headers(self, url: str) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "N8N-Workflow-Manager",
        }
        # The token only ever goes to GitHub or the configured repository host.
        host = (urlparse(url).hostname or "").lower()
        if self.token and host in self._trusted_hosts():
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    async def list_templates(self, include_content: bool = False) -> list[TemplateRef]:
        if not self.repo_url:
            raise TemplateSourceError("GitHub repository URL not configured", status_code=500)

        try:
            async with self._client() as client:
                response = await client.get(self.repo_url, headers=self._headers(self.repo_url))
        except httpx.HTTPError as exc:
            raise TemplateSourceError(f"Failed to fetch workflows from GitHub: {exc}") from exc
        if response.status_code != 200:
            raise TemplateSourceError(f"GitHub API responded with status: {response.status_code}")

        try:
            listing = response.json()
        except ValueError as exc:
            raise TemplateSourceError("GitHub API returned an invalid listing") from exc
        if not isinstance(listing, list):
            return []

        templates = [
            TemplateRef(
                name=entry["name"],
                path=entry.get("path") or entry["name"],
                sha=entry.get("sha", ""),
                download_url=entry["download_url"],
            )
            for entry in listing
            if isinstance(entry, dict)
            and str(entry.get("name", "")).endswith(".json")
            and entry.get("type") == "file"
            and entry.get("download_url")
        ]

        if include_content and templates:
            await self._attach_contents(templates)
        return templates

    async def _attach_contents(self, templates: list[TemplateRef]) -> None:
        async with self._client() as client:
            bodies = await asyncio.gather(
                *(self._download(client, ref.download_url) for ref in templates),
                return_exceptions=True,
            )
        for ref, body in zip(templates, bodies):
            if isinstance(body, Exception):
                logger.warning("Could not load template %s: %s", ref.name, body)
                continue
            ref.content = body

    async def _download(self, client: httpx.AsyncClient, url: str) -> dict[str, Any]:
        response = await client.get(url, headers=self._headers(url))
        if response.status_code != 200:
            raise TemplateSourceError(f"Failed to fetch workflow: {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise TemplateSourceError("Workflow file is not valid JSON") from exc
        if not isinstance(body, dict):
            raise TemplateSourceError("Workflow file is not a JSON object")
        return body

    async def fetch_workflow(self, url: str) -> dict[str, Any]:
        try:
            async with self._client() as client:
                return await self._download(client, url)
        except httpx.HTTPError as exc:
            raise TemplateSourceError(f"Failed to fetch workflow: {exc}") from exc
