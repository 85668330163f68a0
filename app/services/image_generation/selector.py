"""
Provider selection: explicit choices pass through, "auto" picks a Gemini tier
by how many people are in the photo.
"""
import logging
from typing import Callable

from app.services.image_generation.base import ProviderChoice

logger = logging.getLogger(__name__)

SubjectCounter = Callable[[str], int]


def choice_for_subject_count(count: int) -> ProviderChoice:
    """Groups go to the pro tier, single subjects to flash."""
    return ProviderChoice.GEMINI_PRO if count > 1 else ProviderChoice.GEMINI_FLASH


def resolve_provider_choice(
    choice: ProviderChoice,
    image: str,
    detector: SubjectCounter,
) -> ProviderChoice:
    """Return a concrete choice; the detector is only called for AUTO."""
    if choice != ProviderChoice.AUTO:
        return choice
    count = detector(image)
    resolved = choice_for_subject_count(count)
    logger.info(
        "auto_choice_resolved",
        extra={"subject_count": count, "choice": resolved.value},
    )
    return resolved
