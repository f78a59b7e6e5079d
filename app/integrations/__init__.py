"""External integration adapters."""

from .github import GitHubTemplateSource, TemplateRef
from .n8n import N8NClient
from .storage import SupabaseStorage

__all__ = [
    "GitHubTemplateSource",
    "TemplateRef",
    "N8NClient",
    "SupabaseStorage",
]
