"""
Subject-count detector for "auto" model selection.
One generateContent call to a text model; any failure counts as one person.
"""
import logging
import re

from app.services.image_generation.normalizer import split_data_uri
from app.services.image_generation.providers.gemini import GeminiImageProvider, source_mime_type
from app.utils.metrics import subject_detection_total

logger = logging.getLogger(__name__)

DEFAULT_DETECTOR_MODEL = "gemini-2.5-flash"
DEFAULT_SUBJECT_COUNT = 1
DETECTION_PROMPT = (
    "How many humans are visible in this image? Return strictly just the integer number. "
    "If unsure or 0, return 1."
)

_LEADING_INT = re.compile(r"^\s*(-?\d+)")


def parse_count(text: str | None) -> int:
    """Leading integer of the model reply; DEFAULT_SUBJECT_COUNT when there is none."""
    if not text:
        return DEFAULT_SUBJECT_COUNT
    match = _LEADING_INT.match(text)
    if not match:
        return DEFAULT_SUBJECT_COUNT
    return int(match.group(1))


def _response_text(result: object) -> str:
    """Concatenated text parts of the first candidate; "" for any other shape."""
    if not isinstance(result, dict):
        return ""
    candidates = result.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict))


class SubjectCountDetector:
    """Callable: image (base64 or data URI) -> number of people. Never raises."""

    def __init__(self, provider: GeminiImageProvider, model: str = DEFAULT_DETECTOR_MODEL) -> None:
        self.provider = provider
        self.model = model

    def __call__(self, image: str) -> int:
        if not self.provider.is_available():
            logger.warning("Detection skipped (no Gemini API key), defaulting to 1 person")
            subject_detection_total.labels(outcome="defaulted").inc()
            return DEFAULT_SUBJECT_COUNT

        try:
            _, image_b64 = split_data_uri(image)
            payload = {
                "contents": [{
                    "role": "user",
                    "parts": [
                        {"inlineData": {"data": image_b64, "mimeType": source_mime_type(image)}},
                        {"text": DETECTION_PROMPT},
                    ],
                }],
            }
            result = self.provider.post_generate_content(self.model, payload)
            count = parse_count(_response_text(result))
        except Exception as e:
            logger.warning(
                "Detection failed, defaulting to 1 person",
                extra={"model": self.model, "error": str(e)},
            )
            subject_detection_total.labels(outcome="defaulted").inc()
            return DEFAULT_SUBJECT_COUNT

        subject_detection_total.labels(outcome="detected").inc()
        logger.info("subject_count_detected", extra={"subject_count": count, "model": self.model})
        return count
