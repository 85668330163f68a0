"""
Base classes and types for generation providers.
Used by factory, runner and all providers (gemini, openai, vertex_veo).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.services.image_generation.failure_types import FailureKind


class AspectRatio(str, Enum):
    """Output ratios the booth can be configured with."""

    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    PHOTO_LANDSCAPE = "3:2"
    PHOTO_PORTRAIT = "2:3"

    @classmethod
    def parse(cls, value: str | None, default: "AspectRatio | None" = None) -> "AspectRatio":
        if value:
            for member in cls:
                if member.value == value.strip():
                    return member
        return default or cls.PORTRAIT


class ProviderChoice(str, Enum):
    """Generation back-end picked for a request; AUTO is resolved before dispatch."""

    GEMINI_FLASH = "gemini-flash"
    GEMINI_PRO = "gemini-pro"
    OPENAI_EDIT = "openai-edit"
    AUTO = "auto"

    @classmethod
    def from_model_id(cls, model_id: str | None) -> "ProviderChoice":
        """
        Map a stored model id (pb_settings.selectedModel) to a choice.
        gpt-image-* -> openai, "auto" -> auto, any "pro" id -> pro tier, else flash.
        """
        value = (model_id or "").strip().lower()
        if value in {c.value for c in cls}:
            return cls(value)
        if value.startswith("gpt-image-"):
            return cls.OPENAI_EDIT
        if value == "auto":
            return cls.AUTO
        if "pro" in value:
            return cls.GEMINI_PRO
        return cls.GEMINI_FLASH


@dataclass
class ImageGenerationRequest:
    """Request for image or video generation."""
    prompt: str
    image: str  # base64 or data URI
    aspect_ratio: str = AspectRatio.PORTRAIT.value
    model: str | None = None
    mask: str | None = None  # base64 or data URI (OpenAI edit)
    size: str | int | None = None  # OpenAI render size, passed through


@dataclass
class GenerationResult:
    """Normalized provider output: payload wrapped as a data URI."""
    data_uri: str
    mime_type: str
    payload_b64: str
    provider: str
    model: str
    raw_response_sanitized: dict[str, Any] | None = None


class ImageGenerationError(Exception):
    """Raised when generation fails; kind drives fallback and HTTP status, detail is for logging."""
    def __init__(
        self,
        message: str,
        kind: FailureKind = FailureKind.UPSTREAM,
        detail: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.detail = detail or {}


def build_gemini_error_detail(result: dict[str, Any]) -> dict[str, Any]:
    """
    Extract error-related fields from raw Gemini API response for logging.
    Normalized keys: prompt_feedback, block_reason, finish_reason, finish_message, safety_ratings.
    """
    detail: dict[str, Any] = {}
    if not result:
        return detail
    prompt_feedback = result.get("promptFeedback") or {}
    if prompt_feedback:
        detail["prompt_feedback"] = prompt_feedback
        if prompt_feedback.get("blockReason"):
            detail["block_reason"] = prompt_feedback.get("blockReason")
    candidates = result.get("candidates") or []
    if candidates:
        c0 = candidates[0]
        if "finishReason" in c0:
            detail["finish_reason"] = c0["finishReason"]
        if "finishMessage" in c0:
            detail["finish_message"] = c0["finishMessage"]
        if "safetyRatings" in c0:
            detail["safety_ratings"] = c0["safetyRatings"]
    return detail


def _sanitize_value(value: Any) -> Any:
    """Recursively replace base64 data with placeholder."""
    if value is None:
        return None
    if isinstance(value, dict):
        if "data" in value and "mimeType" in value:
            return {"mimeType": value.get("mimeType"), "data": "[REDACTED]"}
        if "bytesBase64Encoded" in value:
            return {**value, "bytesBase64Encoded": "[REDACTED]"}
        return {k: _sanitize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_sanitize_value(v) for v in value]
    return value


def sanitize_response_for_log(result: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a provider response safe for logging (no base64 media)."""
    if not result:
        return {}
    out = _sanitize_value(result)
    return out if isinstance(out, dict) else {}


class ImageGenerationProvider(ABC):
    """Base class for generation providers."""

    name: str = ""

    def __init__(self, config: dict) -> None:
        self.config = config

    @abstractmethod
    def is_available(self) -> bool:
        """Check if provider is configured and available."""
        pass

    @abstractmethod
    def get_supported_models(self) -> list[str]:
        """Return list of supported model names."""
        pass

    @abstractmethod
    def generate(self, request: ImageGenerationRequest) -> GenerationResult:
        """Generate from request. Raises ImageGenerationError or ValueError on failure."""
        pass
