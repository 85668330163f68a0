"""
Response normalization: pull a base64 media payload out of provider-specific
response shapes and wrap it as a data URI.

Each provider has an ordered tuple of extractors; each returns the payload or
None, and the first hit wins.
"""
import base64
import binascii
from typing import Any, Callable, Sequence

from app.services.image_generation.base import ImageGenerationError
from app.services.image_generation.failure_types import FailureKind

Extractor = Callable[[Any], str | None]

IMAGE_PNG = "image/png"
VIDEO_MP4 = "video/mp4"


def _non_empty_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _first_prediction(response: Any) -> Any:
    if not isinstance(response, dict):
        return None
    predictions = response.get("predictions") or []
    if not isinstance(predictions, list) or not predictions:
        return None
    return predictions[0]


# ---------- Vertex Veo ----------
def veo_bare_string(response: Any) -> str | None:
    """predictions[0] is the base64 payload itself."""
    return _non_empty_str(_first_prediction(response))


def veo_top_level_field(response: Any) -> str | None:
    """predictions[0].bytesBase64Encoded"""
    prediction = _first_prediction(response)
    if not isinstance(prediction, dict):
        return None
    return _non_empty_str(prediction.get("bytesBase64Encoded"))


def veo_nested_video_field(response: Any) -> str | None:
    """predictions[0].video.bytesBase64Encoded"""
    prediction = _first_prediction(response)
    if not isinstance(prediction, dict):
        return None
    video = prediction.get("video")
    if not isinstance(video, dict):
        return None
    return _non_empty_str(video.get("bytesBase64Encoded"))


VEO_EXTRACTORS: tuple[Extractor, ...] = (
    veo_bare_string,
    veo_top_level_field,
    veo_nested_video_field,
)


# ---------- Gemini ----------
def gemini_first_inline_part(response: Any) -> str | None:
    """First inline image part of the first candidate."""
    if not isinstance(response, dict):
        return None
    candidates = response.get("candidates") or []
    if not candidates:
        return None
    content = candidates[0].get("content") or {}
    for part in content.get("parts") or []:
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and isinstance(inline.get("data"), str) and inline["data"]:
            return inline["data"]
    return None


GEMINI_EXTRACTORS: tuple[Extractor, ...] = (gemini_first_inline_part,)


# ---------- OpenAI ----------
def openai_first_b64_json(response: Any) -> str | None:
    """data[0].b64_json, from an SDK response object or a plain dict."""
    data = response.get("data") if isinstance(response, dict) else getattr(response, "data", None)
    if not data:
        return None
    first = data[0]
    value = first.get("b64_json") if isinstance(first, dict) else getattr(first, "b64_json", None)
    return _non_empty_str(value)


OPENAI_EXTRACTORS: tuple[Extractor, ...] = (openai_first_b64_json,)


def extract_payload(response: Any, extractors: Sequence[Extractor]) -> str | None:
    for extractor in extractors:
        payload = extractor(response)
        if payload:
            return payload
    return None


def to_data_uri(mime_type: str, payload_b64: str) -> str:
    return f"data:{mime_type};base64,{payload_b64}"


def normalize(
    response: Any,
    extractors: Sequence[Extractor],
    mime_type: str,
    no_data_message: str = "No data returned",
) -> tuple[str, str]:
    """
    Returns (data_uri, payload_b64).
    Raises ImageGenerationError(kind=NO_DATA) when no extractor matches.
    """
    payload = extract_payload(response, extractors)
    if not payload:
        raise ImageGenerationError(no_data_message, kind=FailureKind.NO_DATA)
    return to_data_uri(mime_type, payload), payload


def strip_data_uri_prefix(value: str) -> str:
    """Payload part of "data:...;base64,<payload>"; bare base64 is returned unchanged."""
    return value.split(",", 1)[1] if "," in value else value


def split_data_uri(value: str) -> tuple[str | None, str]:
    """Return (mime_type or None, payload_b64)."""
    if value.startswith("data:") and "," in value:
        header, payload = value.split(",", 1)
        mime = header[len("data:"):].split(";", 1)[0] or None
        return mime, payload
    return None, strip_data_uri_prefix(value)


def decode_data_uri(value: str) -> bytes:
    """Materialize a data URI (or bare base64) as bytes."""
    _, payload = split_data_uri(value)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageGenerationError(f"Invalid base64 payload: {e}", kind=FailureKind.VALIDATION) from e
