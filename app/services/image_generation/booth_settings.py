"""
Booth-side settings relevant to generation (the "pb_settings" JSON blob the
kiosk stores). Parsed into an explicit value that callers pass to the runner.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any

from app.services.image_generation.base import ProviderChoice

logger = logging.getLogger(__name__)

DEFAULT_SELECTED_MODEL = "gemini-2.5-flash-image"
DEFAULT_GPT_MODEL_SIZE = 1024


def _parse_size(value: Any) -> int:
    try:
        size = int(str(value).strip())
    except (TypeError, ValueError):
        return DEFAULT_GPT_MODEL_SIZE
    return size if size > 0 else DEFAULT_GPT_MODEL_SIZE


@dataclass(frozen=True)
class PhotoboothSettings:
    selected_model: str = DEFAULT_SELECTED_MODEL
    gpt_model_size: int = DEFAULT_GPT_MODEL_SIZE

    @property
    def provider_choice(self) -> ProviderChoice:
        return ProviderChoice.from_model_id(self.selected_model)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "PhotoboothSettings":
        """Accepts the camelCase keys the kiosk writes (selectedModel, gptModelSize)."""
        if not isinstance(data, dict):
            return cls()
        selected = data.get("selectedModel") or data.get("selected_model") or DEFAULT_SELECTED_MODEL
        size_raw = data.get("gptModelSize", data.get("gpt_model_size"))
        size = _parse_size(size_raw) if size_raw not in (None, "") else DEFAULT_GPT_MODEL_SIZE
        return cls(selected_model=str(selected), gpt_model_size=size)

    @classmethod
    def from_json(cls, raw: str | None) -> "PhotoboothSettings":
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("pb_settings is not valid JSON, using defaults")
            return cls()
        return cls.from_dict(data)
