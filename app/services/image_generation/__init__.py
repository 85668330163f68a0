"""
Generation service with multi-provider support (Gemini, OpenAI edit, Vertex Veo).
"""
from .base import (
    AspectRatio,
    GenerationResult,
    ImageGenerationError,
    ImageGenerationProvider,
    ImageGenerationRequest,
    ProviderChoice,
    build_gemini_error_detail,
    sanitize_response_for_log,
)
from .factory import ImageProviderFactory
from .failure_types import FailureKind, ProviderFailure, ProviderResult, http_status_for
from .runner import generate_ai_image, generate_video

__all__ = [
    "AspectRatio",
    "GenerationResult",
    "ImageGenerationError",
    "ImageGenerationProvider",
    "ImageGenerationRequest",
    "ProviderChoice",
    "build_gemini_error_detail",
    "sanitize_response_for_log",
    "ImageProviderFactory",
    "FailureKind",
    "ProviderFailure",
    "ProviderResult",
    "http_status_for",
    "generate_ai_image",
    "generate_video",
]
