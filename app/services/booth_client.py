"""
Booth-side HTTP client for the generation API.
Mirrors what the kiosk does: post to the endpoints, then materialize the
returned data URI (video) as raw bytes.
"""
import logging

import httpx

from app.services.image_generation.normalizer import decode_data_uri

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 65.0  # a bit above the server's 60s ceiling


class BoothClientError(Exception):
    """Server answered with an error or an unusable body."""
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def to_veo_aspect_ratio(output_ratio: str | None) -> str:
    """Veo renders 16:9 or 9:16 only; landscape booth ratios map to 16:9."""
    return "16:9" if output_ratio in ("16:9", "3:2") else "9:16"


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return default


class BoothClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _post(self, path: str, payload: dict) -> httpx.Response:
        with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            return client.post(path, json=payload)

    def generate_video(self, image: str, prompt: str, output_ratio: str | None = None) -> bytes:
        """Request a Veo clip for the photo and return the MP4 bytes."""
        response = self._post("/generate-video", {
            "image": image,
            "prompt": prompt,
            "aspectRatio": to_veo_aspect_ratio(output_ratio),
        })
        if not response.is_success:
            raise BoothClientError(
                _error_message(response, f"Server Error: {response.status_code}"),
                status_code=response.status_code,
            )
        video = response.json().get("video")
        if not video:
            raise BoothClientError("Server returned success but no video data found.")
        logger.info("Video received from server")
        return decode_data_uri(video)

    def generate_image_openai(
        self,
        prompt: str,
        image: str,
        mask: str | None = None,
        size: int | str | None = None,
    ) -> str:
        """Call the OpenAI edit endpoint; returns the image data URI."""
        payload = {"prompt": prompt, "imageBase64": image, "size": size}
        if mask:
            payload["maskBase64"] = mask
        response = self._post("/generate-image-openai", payload)
        if not response.is_success:
            raise BoothClientError(
                _error_message(response, "OpenAI Generation Failed"),
                status_code=response.status_code,
            )
        return response.json()["imageBase64"]
