"""
OpenAI image-edit provider (gpt-image models).
Expects a square, pre-padded image and optional mask; returns base64 PNG.
"""
import base64
import binascii
import logging
import re

from openai import OpenAI, APIError, APIStatusError

from app.services.image_generation.base import (
    ImageGenerationProvider,
    ImageGenerationRequest,
    GenerationResult,
    ImageGenerationError,
)
from app.services.image_generation.failure_types import FailureKind
from app.services.image_generation.normalizer import (
    IMAGE_PNG,
    OPENAI_EXTRACTORS,
    normalize,
    strip_data_uri_prefix,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-image-1.5"
DEFAULT_SIZE = "1024x1024"
# Appended by the booth flow before calling the edit endpoint
PROMPT_SUFFIX = " photorealistic, highly detailed, preserve identity"


def size_to_openai(size: str | int | None, default: str = DEFAULT_SIZE) -> str:
    """
    720 -> "720x720"; "1024x1536" passes through; empty -> default.
    Non-standard sizes are not validated here, the model decides.
    """
    if size is None or size == "":
        return default
    value = str(size).strip()
    if "x" in value:
        return value
    return f"{value}x{value}"


_NON_BASE64 = re.compile(r"[^A-Za-z0-9+/]")


def _decode(value: str, field: str) -> bytes:
    """
    Lenient base64: characters outside the (standard or url-safe)
    alphabet are dropped before the missing padding is restored.
    """
    cleaned = _NON_BASE64.sub("", strip_data_uri_prefix(value).replace("-", "+").replace("_", "/"))
    try:
        return base64.b64decode(cleaned + "=" * (-len(cleaned) % 4))
    except (binascii.Error, ValueError) as e:
        raise ImageGenerationError(f"Could not decode {field}: {e}") from e


class OpenAIImageEditProvider(ImageGenerationProvider):
    """OpenAI image edit provider."""

    name = "openai"

    def __init__(self, config: dict):
        super().__init__(config)
        self.api_key = config.get("api_key")
        self.timeout = config.get("timeout", 60.0)
        self.model = config.get("model") or DEFAULT_MODEL
        self.default_size = config.get("default_size") or DEFAULT_SIZE

        if self.api_key:
            self.client = OpenAI(api_key=self.api_key, timeout=self.timeout)
        else:
            self.client = None

    def is_available(self) -> bool:
        """Check if OpenAI is configured."""
        return bool(self.api_key and self.client)

    def get_supported_models(self) -> list[str]:
        return [self.model]

    def generate(self, request: ImageGenerationRequest) -> GenerationResult:
        if not self.is_available():
            raise ImageGenerationError(
                "Server config error: OPENAI_API_KEY missing",
                kind=FailureKind.CONFIGURATION,
            )
        if not request.prompt or not request.image:
            raise ImageGenerationError("Missing prompt or image", kind=FailureKind.VALIDATION)

        image_bytes = _decode(request.image, "image")
        mask_bytes = _decode(request.mask, "mask") if request.mask else None
        model = request.model or self.model
        size = size_to_openai(request.size, self.default_size)

        logger.info("Calling OpenAI Image Edit", extra={"model": model, "size": size})

        kwargs: dict = {
            "model": model,
            "image": ("image.png", image_bytes, IMAGE_PNG),
            "prompt": request.prompt,
            "n": 1,
            "size": size,
            "response_format": "b64_json",
        }
        if mask_bytes is not None:
            kwargs["mask"] = ("mask.png", mask_bytes, IMAGE_PNG)

        try:
            response = self.client.images.edit(**kwargs)
        except APIStatusError as e:
            raise ImageGenerationError(
                e.message or "OpenAI Generation Failed",
                detail={"http_status": e.status_code},
            ) from e
        except APIError as e:
            raise ImageGenerationError(e.message or "OpenAI Generation Failed") from e

        data_uri, payload = normalize(response, OPENAI_EXTRACTORS, IMAGE_PNG, "No image returned")
        return GenerationResult(
            data_uri=data_uri,
            mime_type=IMAGE_PNG,
            payload_b64=payload,
            provider=self.name,
            model=model,
        )
