"""Custom exception types for domain and API layers."""


class AppError(Exception):
    """Base app exception."""

    status_code = 500

    def __init__(self, message: str = "", status_code: int | None = None):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or "Application error"
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Validation failure for user input or uploaded files."""

    status_code = 400


class NotFoundError(AppError):
    """Requested record does not exist for this user."""

    status_code = 404


class NotConfiguredError(AppError):
    """A required host, token or repository setting is missing."""

    status_code = 400


class IntegrationError(AppError):
    """External integration call failure."""

    status_code = 502


class N8NError(IntegrationError):
    """The n8n REST API answered with a non-2xx status."""

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class N8NConnectionError(N8NError):
    """The n8n host could not be reached or timed out."""


class TemplateSourceError(IntegrationError):
    """Template repository listing or download failure."""


class StorageError(IntegrationError):
    """Object storage or metadata write failure."""
