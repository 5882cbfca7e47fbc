"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from shared.config import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    profile_store: str
    identity_provider: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """
    Readiness check endpoint.

    Reports which backends are configured; it does not call them.
    """
    settings = get_settings()
    supabase_configured = bool(settings.supabase_url and settings.supabase_anon_key)
    if settings.profile_store_backend == "memory":
        store = "memory"
    else:
        store = "configured" if settings.supabase_service_role_key else "unconfigured"

    return ReadinessResponse(
        status="ready",
        profile_store=store,
        identity_provider="configured" if supabase_configured else "unconfigured",
    )
