"""
Application configuration.
All settings are loaded from environment variables.
Use env.example as a reference for the variables the endpoints need.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Credentials default to empty: endpoints report a configuration error
    per request instead of failing at startup.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    # Comma-separated origins. Empty = "*" (any origin).
    cors_origins: str = ""

    # ===========================================
    # GOOGLE GEMINI (client-exposed key, env API_KEY)
    # ===========================================
    api_key: str = ""
    gemini_api_endpoint: str = "https://generativelanguage.googleapis.com"
    gemini_flash_image_model: str = "gemini-2.5-flash-image"
    gemini_pro_image_model: str = "gemini-3-pro-image-preview"
    gemini_pro_image_size: str = "1K"
    # Text model used to count people for "auto" model selection
    gemini_detector_model: str = "gemini-2.5-flash"

    # ===========================================
    # OPENAI IMAGE EDIT
    # ===========================================
    openai_api_key: str = ""
    openai_image_model: str = "gpt-image-1.5"
    openai_default_size: str = "1024x1024"

    # ===========================================
    # GOOGLE VERTEX AI (Veo video)
    # ===========================================
    gcp_project_id: str = ""
    gcp_client_email: str = ""
    gcp_private_key: str = ""
    vertex_location: str = "us-central1"
    vertex_video_model: str = "veo-3.1-fast-generate-preview"
    vertex_scopes: str = "https://www.googleapis.com/auth/cloud-platform"

    # ===========================================
    # PROVIDER CALLS
    # ===========================================
    # Hosting platform caps a single invocation at 60s; no call may outlive it.
    provider_timeout_seconds: float = 60.0

    # ===========================================
    # LOGGING
    # ===========================================
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("provider_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Ensure provider timeout is positive."""
        if v <= 0:
            raise ValueError("provider_timeout_seconds must be positive")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        """Allowed origins as a list; ["*"] when not configured."""
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]

    @property
    def gcp_private_key_unescaped(self) -> str:
        """Private key with literal \\n sequences (as stored in env dashboards) turned into newlines."""
        return self.gcp_private_key.replace("\\n", "\n")

    @property
    def has_gcp_credentials(self) -> bool:
        return bool(self.gcp_project_id and self.gcp_client_email and self.gcp_private_key)

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
