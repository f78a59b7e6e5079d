"""
N8N Workflow Manager - FastAPI Application
Template browsing, personal workflow library and installs into n8n.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.config import settings
from app.core.exceptions import AppError
from app.database import init_db
from app.api.routes import (
    favorites,
    health,
    install,
    library,
    n8n_status,
    settings as settings_routes,
    templates,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("Starting %s...", settings.app_name)

    try:
        init_db()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")

    if not settings.github_repo_url:
        logger.warning("GITHUB_REPO_URL is not set; template listing will fail")
    if not settings.storage_configured:
        logger.warning("Supabase storage is not configured; uploads will fail")
    logger.info(f"API running on {settings.app_env} environment")
    yield
    logger.info("Shutting down %s...", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="Backend API for the N8N workflow manager dashboard",
    version="1.0.0",
    debug=settings.app_debug,
    lifespan=lifespan,
)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    message = first.get("msg", "Invalid request")
    location = ".".join(str(part) for part in first.get("loc", ())[1:])
    if location:
        message = f"{location}: {message}"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.get("/")
async def root() -> dict:
    return {
        "name": settings.app_name,
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


prefix = settings.api_v1_prefix
app.include_router(health.router, prefix=prefix, tags=["Health"])
app.include_router(settings_routes.router, prefix=prefix, tags=["Settings"])
app.include_router(n8n_status.router, prefix=prefix, tags=["N8N"])
app.include_router(templates.router, prefix=f"{prefix}/workflows", tags=["Templates"])
app.include_router(library.router, prefix=f"{prefix}/workflows", tags=["Library"])
app.include_router(install.router, prefix=f"{prefix}/workflows", tags=["Install"])
app.include_router(favorites.router, prefix=f"{prefix}/workflows", tags=["Favorites"])

