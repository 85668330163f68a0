"""
Generation API: image-to-video (Vertex Veo), OpenAI image edit, and the combined
booth image flow with model selection and fallback.
Error bodies are always {"error": "..."}.
"""
import logging

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.schemas.generation import GenerateImageIn, GenerateImageOpenAIIn, GenerateVideoIn
from app.services.image_generation import (
    ImageGenerationError,
    ImageGenerationRequest,
    ImageProviderFactory,
    generate_ai_image,
    generate_video,
    http_status_for,
)
from app.services.image_generation.booth_settings import PhotoboothSettings
from app.services.image_generation.providers.vertex_veo import MISSING_CREDENTIALS_MESSAGE
from app.services.image_generation.runner import attempt

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generation"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _error_from(exc: ImageGenerationError, fallback_message: str) -> JSONResponse:
    return _error(http_status_for(exc.kind), str(exc) or fallback_message)


# ---------- /generate-video ----------
@router.options("/generate-video")
def generate_video_preflight() -> Response:
    return Response(status_code=200)


@router.post("/generate-video")
def generate_video_endpoint(body: GenerateVideoIn | None = None):
    """Image + prompt -> {"video": "data:video/mp4;base64,..."} via Vertex AI Veo."""
    body = body or GenerateVideoIn()
    if not body.image or not body.prompt:
        return _error(400, "Missing image or prompt")

    if not settings.has_gcp_credentials:
        logger.error("Missing GCP Credentials in Environment Variables")
        return _error(500, MISSING_CREDENTIALS_MESSAGE)

    try:
        provider = ImageProviderFactory.create_from_settings(settings, "vertex_veo")
        result = generate_video(body.image, body.prompt, body.aspect_ratio, provider=provider)
    except ImageGenerationError as e:
        logger.exception("Video generation failed", extra={"failure_kind": e.kind.value})
        return _error_from(e, "Internal Server Error")
    except Exception as e:
        logger.exception("Video generation failed")
        return _error(500, str(e) or "Internal Server Error")

    return {"video": result.data_uri}


# ---------- /generate-image-openai ----------
@router.options("/generate-image-openai")
def generate_image_openai_preflight() -> Response:
    return Response(status_code=200)


@router.post("/generate-image-openai")
def generate_image_openai_endpoint(body: GenerateImageOpenAIIn | None = None):
    """Pre-squared image (+ mask) and prompt -> {"imageBase64": data URI} via OpenAI image edit."""
    if not settings.openai_api_key:
        logger.error("Missing OPENAI_API_KEY")
        return _error(500, "Server config error: OPENAI_API_KEY missing")

    body = body or GenerateImageOpenAIIn()
    if not body.prompt or not body.image_base64:
        return _error(400, "Missing prompt or image")

    provider = ImageProviderFactory.create_from_settings(settings, "openai")
    result = attempt(provider, ImageGenerationRequest(
        prompt=body.prompt,
        image=body.image_base64,
        mask=body.mask_base64,
        size=body.size,
    ))
    if not result.ok:
        failure = result.failure
        logger.error(f"OpenAI API Error: {failure.message}", extra={"failure_kind": failure.kind.value})
        return _error(http_status_for(failure.kind), failure.message or "OpenAI Generation Failed")

    return {"imageBase64": result.value.data_uri}


# ---------- /generate-image ----------
@router.options("/generate-image")
def generate_image_preflight() -> Response:
    return Response(status_code=200)


@router.post("/generate-image")
def generate_image_endpoint(body: GenerateImageIn | None = None):
    """Booth photo flow: model from settings (or auto), OpenAI -> Gemini and pro -> flash fallback."""
    body = body or GenerateImageIn()
    if not body.image or not body.prompt:
        return _error(400, "Missing image or prompt")

    booth_settings = PhotoboothSettings.from_dict(
        body.settings.model_dump(by_alias=True, exclude_none=True) if body.settings else None
    )
    try:
        result = generate_ai_image(
            body.image,
            body.prompt,
            body.aspect_ratio or "9:16",
            booth_settings,
        )
    except ImageGenerationError as e:
        logger.exception("Image generation failed", extra={"failure_kind": e.kind.value})
        return _error_from(e, "Generation failed")
    except Exception as e:
        logger.exception("Image generation failed")
        return _error(500, str(e) or "Generation failed")

    return {"image": result.data_uri, "provider": result.provider, "model": result.model}
