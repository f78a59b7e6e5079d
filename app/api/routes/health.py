"""
Health API Routes
"""
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import check_database_connection, database_health

router = APIRouter()


@router.get("/health")
async def health_check() -> JSONResponse:
    """Application and database health"""
    db = database_health()
    ok = bool(db.get("ok")) and check_database_connection()
    return JSONResponse(
        status_code=status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if ok else "degraded",
            "database": db,
        },
    )


@router.get("/health/integrations")
async def check_integrations() -> dict:
    """Report which external services have configuration present."""
    checks = {
        "supabase_auth": bool(settings.supabase_jwt_secret.get_secret_value()),
        "supabase_storage": settings.storage_configured,
        "github_templates": bool(settings.github_repo_url),
        "n8n_fallback": bool(settings.n8n_host_url and settings.n8n_api_key),
    }
    return {
        "integrations": checks,
        "ready": all(v for k, v in checks.items() if k != "n8n_fallback"),
        "missing": [k for k, v in checks.items() if not v],
    }
