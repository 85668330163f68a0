"""
Factory for creating generation providers based on configuration.
"""
import logging

from app.services.image_generation.base import ImageGenerationProvider
from app.services.image_generation.providers.gemini import GeminiImageProvider
from app.services.image_generation.providers.openai import OpenAIImageEditProvider
from app.services.image_generation.providers.vertex_veo import VertexVeoProvider

logger = logging.getLogger(__name__)


class ImageProviderFactory:
    """Factory for creating generation providers."""

    PROVIDERS = {
        "gemini": GeminiImageProvider,
        "openai": OpenAIImageEditProvider,
        "vertex_veo": VertexVeoProvider,
    }

    @classmethod
    def create(cls, provider_name: str, config: dict) -> ImageGenerationProvider:
        """
        Create provider instance by name.

        Args:
            provider_name: Name of provider (gemini, openai, vertex_veo)
            config: Provider-specific configuration dict

        Raises:
            ValueError: If provider name is unknown
        """
        provider_class = cls.PROVIDERS.get(provider_name.lower())

        if not provider_class:
            available = ", ".join(cls.PROVIDERS.keys())
            raise ValueError(
                f"Unknown provider: {provider_name}. "
                f"Available providers: {available}"
            )

        provider = provider_class(config)

        if not provider.is_available():
            logger.warning(f"Provider {provider_name} created but not fully configured")

        return provider

    @classmethod
    def config_from_settings(cls, settings, provider_name: str) -> dict:
        """Provider config dict built from application settings."""
        timeout = settings.provider_timeout_seconds
        if provider_name == "gemini":
            return {
                "api_key": settings.api_key,
                "api_endpoint": settings.gemini_api_endpoint,
                "flash_model": settings.gemini_flash_image_model,
                "pro_model": settings.gemini_pro_image_model,
                "pro_image_size": settings.gemini_pro_image_size,
                "timeout": timeout,
            }
        if provider_name == "openai":
            return {
                "api_key": settings.openai_api_key,
                "model": settings.openai_image_model,
                "default_size": settings.openai_default_size,
                "timeout": timeout,
            }
        if provider_name == "vertex_veo":
            return {
                "project_id": settings.gcp_project_id,
                "client_email": settings.gcp_client_email,
                "private_key": settings.gcp_private_key_unescaped,
                "location": settings.vertex_location,
                "model": settings.vertex_video_model,
                "scope": settings.vertex_scopes,
                "timeout": timeout,
            }
        raise ValueError(f"Provider {provider_name} not supported in settings")

    @classmethod
    def create_from_settings(cls, settings, provider_name: str) -> ImageGenerationProvider:
        return cls.create(provider_name, cls.config_from_settings(settings, provider_name))
