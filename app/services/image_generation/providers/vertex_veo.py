"""
Google Vertex AI Veo provider for image-to-video generation.
Service-account credentials are exchanged for a bearer token per request;
the :predict call is synchronous and bounded by the configured timeout.
"""
import logging
from typing import Any

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from app.services.image_generation.base import (
    ImageGenerationProvider,
    ImageGenerationRequest,
    GenerationResult,
    ImageGenerationError,
    sanitize_response_for_log,
)
from app.services.image_generation.failure_types import FailureKind
from app.services.image_generation.normalizer import (
    VEO_EXTRACTORS,
    VIDEO_MP4,
    normalize,
    strip_data_uri_prefix,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "veo-3.1-fast-generate-preview"
DEFAULT_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
TOKEN_URI = "https://oauth2.googleapis.com/token"
MISSING_CREDENTIALS_MESSAGE = (
    "Server configuration error: Missing GCP Credentials. "
    "Please set GCP_PROJECT_ID, GCP_CLIENT_EMAIL, and GCP_PRIVATE_KEY."
)
NO_VIDEO_MESSAGE = "No video data received from Vertex AI."


class VertexVeoProvider(ImageGenerationProvider):
    """Google Vertex AI Veo video provider."""

    name = "vertex_veo"

    def __init__(self, config: dict):
        super().__init__(config)
        self.project_id = config.get("project_id") or ""
        self.client_email = config.get("client_email") or ""
        self.private_key = config.get("private_key") or ""
        self.location = config.get("location", "us-central1")
        self.model = config.get("model") or DEFAULT_MODEL
        self.scopes = [config.get("scope") or DEFAULT_SCOPE]
        self.transport = config.get("transport")  # httpx transport override (tests)
        self.timeout = float(config.get("timeout", 60.0))
        self.api_endpoint = config.get("api_endpoint") or (
            f"https://{self.location}-aiplatform.googleapis.com/v1/"
            f"projects/{self.project_id}/locations/{self.location}/"
            f"publishers/google/models"
        )

    def is_available(self) -> bool:
        """Check if service-account credentials are configured."""
        return bool(self.project_id and self.client_email and self.private_key)

    def get_supported_models(self) -> list[str]:
        return [
            "veo-3.1-fast-generate-preview",
            "veo-2.0-generate-preview",
        ]

    def get_access_token(self) -> str:
        """Exchange the service account for an OAuth2 bearer token."""
        info = {
            "type": "service_account",
            "project_id": self.project_id,
            "client_email": self.client_email,
            "private_key": self.private_key,
            "token_uri": TOKEN_URI,
        }
        try:
            creds = service_account.Credentials.from_service_account_info(info, scopes=self.scopes)
            creds.refresh(GoogleAuthRequest())
        except ValueError as e:
            raise ImageGenerationError(
                f"Invalid GCP service account credentials: {e}",
                kind=FailureKind.CONFIGURATION,
            ) from e
        except GoogleAuthError as e:
            raise ImageGenerationError(f"GCP authentication failed: {e}") from e
        return creds.token

    def build_payload(self, request: ImageGenerationRequest) -> dict[str, Any]:
        return {
            "instances": [
                {
                    "prompt": request.prompt,
                    "image": {"bytesBase64Encoded": strip_data_uri_prefix(request.image)},
                }
            ],
            "parameters": {
                "aspectRatio": request.aspect_ratio or "9:16",
                "sampleCount": 1,
            },
        }

    def generate(self, request: ImageGenerationRequest) -> GenerationResult:
        if not request.image or not request.prompt:
            raise ImageGenerationError("Missing image or prompt", kind=FailureKind.VALIDATION)
        if not self.is_available():
            raise ImageGenerationError(MISSING_CREDENTIALS_MESSAGE, kind=FailureKind.CONFIGURATION)

        model = request.model or self.model
        token = self.get_access_token()
        url = f"{self.api_endpoint}/{model}:predict"
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json; charset=utf-8",
        }

        logger.info("Calling Vertex AI endpoint", extra={"model": model, "aspect_ratio": request.aspect_ratio})

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(url, headers=headers, json=self.build_payload(request))
        except httpx.HTTPError as e:
            raise ImageGenerationError(str(e) or type(e).__name__) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success:
            error = data.get("error")
            logger.error(
                "Vertex AI error response",
                extra={"http_status": response.status_code, "error": str(error)},
            )
            message = error.get("message") if isinstance(error, dict) else None
            raise ImageGenerationError(
                message or f"Vertex AI API Failed with status {response.status_code}",
                detail={"http_status": response.status_code},
            )

        try:
            data_uri, payload = normalize(data, VEO_EXTRACTORS, VIDEO_MP4, NO_VIDEO_MESSAGE)
        except ImageGenerationError:
            logger.error("Unexpected Vertex AI response format", extra={"error": str(sanitize_response_for_log(data))})
            raise

        return GenerationResult(
            data_uri=data_uri,
            mime_type=VIDEO_MP4,
            payload_b64=payload,
            provider=self.name,
            model=model,
        )
