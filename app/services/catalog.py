"""
Template catalog view: classify fetched templates, then filter and sort them
for the dashboard list.

The complexity thresholds and keyword tables below are best-fit heuristics
picked for display, not derived from n8n itself. Swap in another
WorkflowClassifier to change them.
"""
from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Protocol

from app.integrations.github import TemplateRef

COMPLEXITY_ORDER = {"low": 0, "medium": 1, "high": 2}
SORT_KEYS = ("name", "date", "popularity", "complexity", "rating")

CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("ai", ("openai", "langchain", "anthropic", "lmchat", "agent")),
    ("communication", ("slack", "telegram", "discord", "gmail", "email", "twilio", "mattermost")),
    ("crm", ("hubspot", "salesforce", "pipedrive", "zoho")),
    ("social-media", ("twitter", "linkedin", "facebook", "instagram")),
    ("data", ("postgres", "mysql", "mongodb", "googlesheets", "airtable", "spreadsheet")),
    ("devops", ("github", "gitlab", "jenkins", "docker", "ssh")),
    ("files", ("googledrive", "dropbox", "ftp", "awss3", "readbinary")),
    ("integration", ("httprequest", "webhook", "api")),
]

TAG_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("ai", ("openai", "langchain", "anthropic", "lmchat")),
    ("slack", ("slack",)),
    ("email", ("gmail", "email", "imap", "smtp")),
    ("database", ("postgres", "mysql", "mongodb", "redis")),
    ("spreadsheet", ("googlesheets", "airtable", "spreadsheet")),
    ("webhook", ("webhook",)),
    ("http", ("httprequest",)),
    ("schedule", ("schedule", "cron", "interval")),
    ("code", ("n8n-nodes-base.code", "function")),
]

TEMPLATE_DESCRIPTIONS = {
    "slack-notification": "Send notifications to Slack channels",
    "email-automation": "Automate email workflows and responses",
    "data-sync": "Synchronize data between different platforms",
    "webhook-handler": "Handle incoming webhooks and process data",
    "file-processor": "Process and transform files automatically",
    "api-integration": "Integrate with various APIs and services",
    "database-backup": "Backup and manage database operations",
    "social-media": "Automate social media posting and monitoring",
}
DEFAULT_DESCRIPTION = "A powerful N8N workflow template ready to use"


def format_workflow_name(file_name: str) -> str:
    base = re.sub(r"\.json$", "", file_name)
    base = re.sub(r"[-_]", " ", base)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), base)


def describe_template(file_name: str) -> str:
    key = re.sub(r"\.json$", "", file_name.lower())
    return TEMPLATE_DESCRIPTIONS.get(key, DEFAULT_DESCRIPTION)


def _first_match(table: list[tuple[str, tuple[str, ...]]], haystacks: Iterable[str]) -> str | None:
    haystacks = [h.lower() for h in haystacks if h]
    for label, keywords in table:
        if any(keyword in hay for hay in haystacks for keyword in keywords):
            return label
    return None


class WorkflowClassifier(Protocol):
    def complexity(self, node_count: int) -> str: ...

    def category(self, node_types: list[str], file_name: str) -> str: ...

    def tags(self, node_types: list[str], file_name: str) -> list[str]: ...

    def trigger(self, node_types: list[str]) -> str: ...


class KeywordClassifier:
    """Default classifier: node-count thresholds and substring keyword tables."""

    low_max_nodes = 5
    medium_max_nodes = 15

    def complexity(self, node_count: int) -> str:
        if node_count <= self.low_max_nodes:
            return "low"
        if node_count <= self.medium_max_nodes:
            return "medium"
        return "high"

    def category(self, node_types: list[str], file_name: str) -> str:
        return (
            _first_match(CATEGORY_KEYWORDS, node_types)
            or _first_match(CATEGORY_KEYWORDS, [file_name])
            or "general"
        )

    def tags(self, node_types: list[str], file_name: str) -> list[str]:
        found: list[str] = []
        for label, keywords in TAG_KEYWORDS:
            haystacks = [t.lower() for t in node_types] + [file_name.lower()]
            if any(keyword in hay for hay in haystacks for keyword in keywords):
                found.append(label)
        return found

    def trigger(self, node_types: list[str]) -> str:
        for node_type in node_types:
            lowered = node_type.lower()
            if "webhook" in lowered:
                return "webhook"
            if any(word in lowered for word in ("schedule", "cron", "interval")):
                return "schedule"
            if "manualtrigger" in lowered:
                return "manual"
            if "trigger" in lowered:
                return "event"
        return "manual"


@dataclass
class TemplateSummary:
    name: str
    display_name: str
    description: str
    category: str
    trigger: str
    complexity: str
    node_count: int
    tags: list[str] = field(default_factory=list)
    last_updated: str = ""
    popularity: float = 0
    rating: float = 0
    path: str = ""
    download_url: str = ""
    loaded: bool = True
    is_favorite: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_number(value: Any) -> float:
    """Numeric meta fields from a remote file; anything unusable counts as 0."""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0
    return number if math.isfinite(number) else 0


def summarize_template(ref: TemplateRef, classifier: WorkflowClassifier | None = None) -> TemplateSummary:
    classifier = classifier or KeywordClassifier()
    content = ref.content or {}
    nodes = [n for n in _as_list(content.get("nodes")) if isinstance(n, dict)]
    node_types = [str(n.get("type", "")) for n in nodes]
    meta = content.get("meta") if isinstance(content.get("meta"), dict) else {}

    explicit_tags = [
        str(t.get("name") if isinstance(t, dict) else t)
        for t in _as_list(content.get("tags"))
        if (t.get("name") if isinstance(t, dict) else t)
    ]
    tags = explicit_tags or classifier.tags(node_types, ref.name)

    return TemplateSummary(
        name=ref.name,
        display_name=format_workflow_name(ref.name),
        description=str(meta.get("description") or describe_template(ref.name)),
        category=classifier.category(node_types, ref.name),
        trigger=classifier.trigger(node_types),
        complexity=classifier.complexity(len(nodes)),
        node_count=len(nodes),
        tags=tags,
        last_updated=str(content.get("updatedAt") or ""),
        popularity=_as_number(meta.get("popularity")),
        rating=_as_number(meta.get("rating")),
        path=ref.path,
        download_url=ref.download_url,
        loaded=ref.content is not None,
    )


@dataclass
class FilterCriteria:
    search: str = ""
    triggers: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    complexities: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    min_nodes: int | None = None
    max_nodes: int | None = None
    active_only: bool = False


def matches_search(item: TemplateSummary, term: str) -> bool:
    term = term.strip().lower()
    if not term:
        return True
    fields = [item.name, item.display_name, item.description, item.category, item.trigger, *item.tags]
    return any(term in str(value).lower() for value in fields)


def _is_active(item: TemplateSummary) -> bool:
    # No live engine state is joined into templates yet, so every item passes.
    return True


def filter_templates(items: Iterable[TemplateSummary], criteria: FilterCriteria) -> list[TemplateSummary]:
    result: list[TemplateSummary] = []
    for item in items:
        if not matches_search(item, criteria.search):
            continue
        if criteria.triggers and item.trigger not in criteria.triggers:
            continue
        if criteria.categories and item.category not in criteria.categories:
            continue
        if criteria.complexities and item.complexity not in criteria.complexities:
            continue
        if criteria.tags and not any(tag in criteria.tags for tag in item.tags):
            continue
        if criteria.min_nodes is not None and item.node_count < criteria.min_nodes:
            continue
        if criteria.max_nodes is not None and item.node_count > criteria.max_nodes:
            continue
        if criteria.active_only and not _is_active(item):
            continue
        result.append(item)
    return result


_SORT_FUNCS = {
    "name": lambda item: item.name.lower(),
    "date": lambda item: item.last_updated,
    "popularity": lambda item: item.popularity,
    "complexity": lambda item: COMPLEXITY_ORDER.get(item.complexity, 0),
    "rating": lambda item: item.rating,
}


def sort_templates(
    items: Iterable[TemplateSummary],
    key: str = "name",
    descending: bool | None = None,
) -> list[TemplateSummary]:
    """Sort by one of SORT_KEYS. Date sorts newest first unless told otherwise."""
    if key not in _SORT_FUNCS:
        raise ValueError(f"Unknown sort key: {key}")
    if descending is None:
        descending = key == "date"
    return sorted(items, key=_SORT_FUNCS[key], reverse=descending)


def facet_values(items: Iterable[TemplateSummary]) -> dict[str, list[str]]:
    """Distinct values per filterable field, for populating the filter controls."""
    items = list(items)
    return {
        "triggers": sorted({i.trigger for i in items}),
        "categories": sorted({i.category for i in items}),
        "complexities": sorted({i.complexity for i in items}, key=lambda c: COMPLEXITY_ORDER.get(c, 0)),
        "tags": sorted({t for i in items for t in i.tags}),
    }
