from fastapi import APIRouter

from app.core.config import settings


router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Liveness probe - always returns 200 if app is running."""
    return {"status": "ok"}


@router.get("/ready")
def readiness() -> dict:
    """Which providers have credentials configured (no outbound calls)."""
    return {
        "status": "ready",
        "providers": {
            "gemini": bool(settings.api_key),
            "openai": bool(settings.openai_api_key),
            "vertex_veo": settings.has_gcp_credentials,
        },
    }
