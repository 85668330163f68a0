"""
Generation runner: Result-typed provider attempts, the two fixed fallback chains
(OpenAI -> Gemini flash, Gemini pro -> Gemini flash) and observability.
No backoff, no retries beyond those chains.
"""
import logging
import time
from typing import Any, Callable

from app.core.config import settings as app_settings
from app.services.image_generation.base import (
    ImageGenerationProvider,
    ImageGenerationRequest,
    GenerationResult,
    ImageGenerationError,
    ProviderChoice,
)
from app.services.image_generation.booth_settings import PhotoboothSettings
from app.services.image_generation.factory import ImageProviderFactory
from app.services.image_generation.failure_types import (
    FailureKind,
    ProviderFailure,
    ProviderResult,
)
from app.services.image_generation.preprocess import prepare_square_edit_inputs
from app.services.image_generation.providers.gemini import GeminiImageProvider
from app.services.image_generation.providers.openai import PROMPT_SUFFIX
from app.services.image_generation.selector import SubjectCounter, resolve_provider_choice
from app.services.image_generation.subject_detector import SubjectCountDetector
from app.utils.metrics import (
    generation_fallbacks_total,
    generation_requests_total,
    provider_request_duration_seconds,
)

logger = logging.getLogger(__name__)

LOG_KEYS = (
    "provider",
    "model",
    "attempt_outcome",
    "failure_kind",
    "http_status",
    "fallback",
)

CHAIN_OPENAI_TO_FLASH = "openai->gemini-flash"
CHAIN_PRO_TO_FLASH = "gemini-pro->gemini-flash"


def _as_generation_error(exc: Exception) -> ImageGenerationError:
    if isinstance(exc, ImageGenerationError):
        return exc
    kind = FailureKind.VALIDATION if isinstance(exc, ValueError) else FailureKind.UPSTREAM
    wrapped = ImageGenerationError(str(exc) or type(exc).__name__, kind=kind)
    wrapped.__cause__ = exc
    return wrapped


def attempt_call(
    provider_name: str,
    model: str | None,
    call: Callable[[], GenerationResult],
) -> ProviderResult:
    """Run one provider call and turn any exception into a ProviderFailure."""
    t0 = time.perf_counter()
    try:
        value = call()
    except Exception as exc:
        error = _as_generation_error(exc)
        failure = ProviderFailure(
            kind=error.kind,
            message=str(error),
            http_status=error.detail.get("http_status"),
            error=error,
            detail=error.detail,
        )
        generation_requests_total.labels(provider=provider_name, status=failure.kind.value).inc()
        _log_structured(
            provider=provider_name,
            model=model,
            attempt_outcome="failure",
            failure_kind=failure.kind.value,
            http_status=failure.http_status,
        )
        return ProviderResult.failed(failure)
    finally:
        provider_request_duration_seconds.labels(provider=provider_name).observe(time.perf_counter() - t0)

    generation_requests_total.labels(provider=provider_name, status="success").inc()
    _log_structured(provider=provider_name, model=value.model, attempt_outcome="success")
    return ProviderResult.success(value)


def attempt(provider: ImageGenerationProvider, request: ImageGenerationRequest) -> ProviderResult:
    return attempt_call(provider.name, request.model, lambda: provider.generate(request))


def _raise_failure(result: ProviderResult) -> None:
    failure = result.failure
    if failure is None or failure.error is None:
        raise ImageGenerationError("Generation failed")
    raise failure.error


def _note_fallback(chain: str, failure: ProviderFailure) -> None:
    logger.warning(
        f"Fallback {chain}: {failure.message}",
        extra={"fallback": chain, "failure_kind": failure.kind.value},
    )
    generation_fallbacks_total.labels(chain=chain).inc()


def _attempt_openai_edit(
    provider: ImageGenerationProvider,
    image: str,
    prompt: str,
    size: int,
) -> ProviderResult:
    def call() -> GenerationResult:
        prepared = prepare_square_edit_inputs(image, size)
        return provider.generate(ImageGenerationRequest(
            prompt=prompt + PROMPT_SUFFIX,
            image=prepared.image,
            mask=prepared.mask,
            size=size,
        ))

    return attempt_call(provider.name, None, call)


def generate_ai_image(
    image: str,
    prompt: str,
    output_ratio: str = "9:16",
    booth_settings: PhotoboothSettings | None = None,
    *,
    gemini: GeminiImageProvider | None = None,
    openai: ImageGenerationProvider | None = None,
    detector: SubjectCounter | None = None,
    settings: Any = None,
) -> GenerationResult:
    """
    Generate an edited photo for the booth.

    openai-edit: preprocess to a square + mask, call OpenAI; on failure continue with Gemini flash.
    auto: count people, >1 -> pro tier, else flash.
    gemini-pro: on failure retry once on flash. Flash failures propagate unchanged.
    Any failure of the first attempt in a chain moves on to flash, including a
    source the preprocessor cannot decode.
    """
    settings = settings or app_settings
    booth_settings = booth_settings or PhotoboothSettings()
    if not image or not prompt:
        raise ImageGenerationError("Missing image or prompt", kind=FailureKind.VALIDATION)

    choice = booth_settings.provider_choice

    if choice == ProviderChoice.OPENAI_EDIT:
        openai = openai or ImageProviderFactory.create_from_settings(settings, "openai")
        logger.info(
            "Using OpenAI provider",
            extra={"choice": choice.value, "size": booth_settings.gpt_model_size},
        )
        result = _attempt_openai_edit(openai, image, prompt, booth_settings.gpt_model_size)
        if result.ok:
            return result.value
        _note_fallback(CHAIN_OPENAI_TO_FLASH, result.failure)
        choice = ProviderChoice.GEMINI_FLASH

    gemini = gemini or ImageProviderFactory.create_from_settings(settings, "gemini")
    if not gemini.is_available():
        raise ImageGenerationError(
            "API Key missing. Set API_KEY for Gemini.",
            kind=FailureKind.CONFIGURATION,
        )

    if choice == ProviderChoice.AUTO:
        detector = detector or SubjectCountDetector(gemini, settings.gemini_detector_model)
        choice = resolve_provider_choice(choice, image, detector)

    def gemini_request(model: str) -> ImageGenerationRequest:
        return ImageGenerationRequest(prompt=prompt, image=image, aspect_ratio=output_ratio, model=model)

    if choice == ProviderChoice.GEMINI_PRO:
        result = attempt(gemini, gemini_request(gemini.pro_model))
        if result.ok:
            return result.value
        _note_fallback(CHAIN_PRO_TO_FLASH, result.failure)

    result = attempt(gemini, gemini_request(gemini.flash_model))
    if result.ok:
        return result.value
    logger.error(
        f"Gemini generation final error: {result.failure.message}",
        extra={"failure_kind": result.failure.kind.value},
    )
    _raise_failure(result)


def generate_video(
    image: str,
    prompt: str,
    aspect_ratio: str | None = None,
    *,
    provider: ImageGenerationProvider | None = None,
    settings: Any = None,
) -> GenerationResult:
    """Single Veo attempt; every failure propagates."""
    settings = settings or app_settings
    provider = provider or ImageProviderFactory.create_from_settings(settings, "vertex_veo")
    result = attempt(provider, ImageGenerationRequest(
        prompt=prompt,
        image=image,
        aspect_ratio=aspect_ratio or "9:16",
    ))
    if not result.ok:
        _raise_failure(result)
    return result.value


def _log_structured(**kwargs: Any) -> None:
    """Emit one structured log line per provider attempt."""
    extra = {k: v for k, v in kwargs.items() if k in LOG_KEYS and v is not None}
    logger.info("image_generation_result", extra=extra)
