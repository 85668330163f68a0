"""
Gemini image provider (Google AI generateContent image edit).
Uses generativelanguage.googleapis.com with api_key.
200 OK with empty content is never a silent success; detail has normalized fields for logging.
"""
import logging
from typing import Any

import httpx

from app.services.image_generation.base import (
    AspectRatio,
    ImageGenerationProvider,
    ImageGenerationRequest,
    GenerationResult,
    ImageGenerationError,
    build_gemini_error_detail,
    sanitize_response_for_log,
)
from app.services.image_generation.failure_types import FailureKind
from app.services.image_generation.normalizer import (
    GEMINI_EXTRACTORS,
    IMAGE_PNG,
    normalize,
    split_data_uri,
)

logger = logging.getLogger(__name__)

DEFAULT_FLASH_MODEL = "gemini-2.5-flash-image"
DEFAULT_PRO_MODEL = "gemini-3-pro-image-preview"

# Booth ratio -> ratio Gemini accepts
GEMINI_ASPECT_RATIOS: dict[AspectRatio, str] = {
    AspectRatio.LANDSCAPE: "16:9",
    AspectRatio.PORTRAIT: "9:16",
    AspectRatio.PHOTO_LANDSCAPE: "4:3",
    AspectRatio.PHOTO_PORTRAIT: "3:4",
}

EDIT_PROMPT_TEMPLATE = """*** EDIT MODE: HARD LOCK ENABLED ***
STRICT CONSTRAINTS:
1. PRESERVE IDENTITY: Face, features, and skin tone must remain EXACTLY the same.
2. PRESERVE STRUCTURE: Pose, posture, hand gestures, and body shape must remain EXACTLY the same.
3. PRESERVE FRAMING: Camera angle, zoom, and composition must remain EXACTLY the same. DO NOT CROP. DO NOT ZOOM.
4. PRESERVE HAIR/HEAD: Keep hairstyle/hijab shape identical unless explicitly asked to change.

CHANGE REQUEST:
{prompt}"""


def build_edit_prompt(prompt: str) -> str:
    return EDIT_PROMPT_TEMPLATE.format(prompt=prompt)


def source_mime_type(image: str) -> str:
    """PNG only when the data URI says so; everything else is sent as JPEG."""
    return "image/png" if image.startswith("data:image/png") else "image/jpeg"


def to_gemini_aspect_ratio(aspect_ratio: str | None) -> str:
    return GEMINI_ASPECT_RATIOS[AspectRatio.parse(aspect_ratio)]


def raise_for_gemini_status(exc: httpx.HTTPStatusError) -> None:
    """Convert an HTTP error from generateContent into ImageGenerationError."""
    try:
        err_body = exc.response.json()
    except ValueError:
        err_body = {}
    if not isinstance(err_body, dict):
        err_body = {}
    detail = build_gemini_error_detail(err_body)
    detail["http_status"] = exc.response.status_code
    msg = (err_body.get("error") or {}).get("message") or str(exc)
    raise ImageGenerationError(msg, kind=FailureKind.UPSTREAM, detail=detail) from exc


class GeminiImageProvider(ImageGenerationProvider):
    """Gemini image editing via Google AI generateContent API, flash or pro tier."""

    name = "gemini"

    def __init__(self, config: dict) -> None:
        super().__init__(config)
        self.api_key = (config.get("api_key") or "").strip()
        endpoint = (config.get("api_endpoint") or "https://generativelanguage.googleapis.com").rstrip("/")
        self.base_url = f"{endpoint}/v1beta/models"
        self.timeout = float(config.get("timeout", 60.0))
        self.flash_model = (config.get("flash_model") or DEFAULT_FLASH_MODEL).strip()
        self.pro_model = (config.get("pro_model") or DEFAULT_PRO_MODEL).strip()
        self.pro_image_size = config.get("pro_image_size") or "1K"
        self.transport = config.get("transport")  # httpx transport override (tests)

    def is_available(self) -> bool:
        return bool(self.api_key)

    def get_supported_models(self) -> list[str]:
        return [self.flash_model, self.pro_model]

    def is_pro_model(self, model: str) -> bool:
        return model == self.pro_model or "pro" in model

    def post_generate_content(self, model: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST :generateContent and return the JSON body."""
        url = f"{self.base_url}/{model}:generateContent"
        params = {"key": self.api_key}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(url, params=params, json=payload)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as e:
            raise_for_gemini_status(e)
        except httpx.HTTPError as e:
            raise ImageGenerationError(str(e) or type(e).__name__, kind=FailureKind.UPSTREAM) from e
        except ValueError as e:
            raise ImageGenerationError(f"Invalid JSON from Gemini: {e}", kind=FailureKind.UPSTREAM) from e

    def build_payload(self, request: ImageGenerationRequest, model: str) -> dict[str, Any]:
        image_config: dict[str, Any] = {"aspectRatio": to_gemini_aspect_ratio(request.aspect_ratio)}
        if self.is_pro_model(model):
            image_config["imageSize"] = self.pro_image_size

        _, image_b64 = split_data_uri(request.image)
        parts: list[dict] = [
            {"text": build_edit_prompt(request.prompt)},
            {"inlineData": {"mimeType": source_mime_type(request.image), "data": image_b64}},
        ]
        return {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "responseModalities": ["IMAGE"],
                "imageConfig": image_config,
            },
        }

    def generate(self, request: ImageGenerationRequest) -> GenerationResult:
        if not self.is_available():
            raise ImageGenerationError(
                "API Key missing. Set API_KEY for Gemini.",
                kind=FailureKind.CONFIGURATION,
            )
        if not request.image or not request.prompt:
            raise ImageGenerationError("Missing image or prompt", kind=FailureKind.VALIDATION)

        model = (request.model or self.flash_model).strip() or self.flash_model
        result = self.post_generate_content(model, self.build_payload(request, model))

        # Block at request level (no candidates)
        prompt_feedback = result.get("promptFeedback", {})
        if prompt_feedback.get("blockReason"):
            detail = build_gemini_error_detail(result)
            raise ImageGenerationError(prompt_feedback["blockReason"], detail=detail)

        candidates = result.get("candidates") or []
        if not candidates:
            detail = build_gemini_error_detail(result)
            raise ImageGenerationError("No candidates in Gemini response", detail=detail)

        c0 = candidates[0]
        finish_reason = c0.get("finishReason", "")
        if finish_reason and finish_reason != "STOP":
            detail = build_gemini_error_detail(result)
            finish_message = c0.get("finishMessage", finish_reason)
            raise ImageGenerationError(finish_message or finish_reason, detail=detail)

        try:
            data_uri, payload = normalize(
                result, GEMINI_EXTRACTORS, IMAGE_PNG, "No image data returned from Gemini"
            )
        except ImageGenerationError as e:
            e.detail.update(build_gemini_error_detail(result))
            raise

        return GenerationResult(
            data_uri=data_uri,
            mime_type=IMAGE_PNG,
            payload_b64=payload,
            provider=self.name,
            model=model,
            raw_response_sanitized=sanitize_response_for_log(result),
        )
