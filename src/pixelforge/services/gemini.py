"""Gemini image-generation client.

Processing flow:
    1. Encode the reference image as PNG and Base64.
    2. Build a ``generateContent`` payload with the prompt, the image and the
       generation config (temperature, aspect ratio, image output modality).
    3. POST it on a worker thread and return a ``Future`` immediately.
    4. Decode the first inline image part of the response into an
       :class:`~pixelforge.core.types.Image`.

Error handling strategy:
    - Transport errors, non-200 responses and responses without an inline
      image all raise :class:`~pixelforge.core.errors.ServiceError` inside the
      future.  The pipeline turns that into an ``ERROR`` state.
    - No retries are attempted; retrying is left to the caller.

Threading:
    - Requests run on a single-worker ``ThreadPoolExecutor`` owned by the
      client, so at most one request is on the wire per client.  Call
      :meth:`GeminiImageService.close` (or use the client as a context
      manager) to shut the executor down.

Security considerations:
    - The API key is sent in the ``x-goog-api-key`` header, never in the URL.
    - Error messages may include upstream response bodies, truncated.
"""

from __future__ import annotations

import base64
import io
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import PIL.Image
import requests

from pixelforge.core.collaborators import ImageGenerationService
from pixelforge.core.config import PixelforgeConfig
from pixelforge.core.errors import ServiceError
from pixelforge.core.types import Image

_MAX_ERROR_BODY = 500


def encode_png_base64(image: Image) -> str:
    """Encode an image as a Base64 PNG string."""
    buffer = io.BytesIO()
    image.to_pil().save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def build_payload(prompt: str, reference_image: Image, temperature: float, aspect_ratio: str) -> dict:
    """Assemble the ``generateContent`` request body."""
    return {
        "contents": [
            {
                "parts": [
                    {"text": prompt},
                    {
                        "inline_data": {
                            "mime_type": "image/png",
                            "data": encode_png_base64(reference_image),
                        }
                    },
                ]
            }
        ],
        "generationConfig": {
            "temperature": temperature,
            "responseModalities": ["IMAGE"],
            "imageConfig": {"aspectRatio": aspect_ratio},
        },
    }


def parse_image_response(data: Any) -> Image:
    """Extract the first inline image from a ``generateContent`` response.

    Raises:
        ServiceError: If the response carries no decodable image.
    """
    try:
        candidates = data.get("candidates") or []
        parts = candidates[0]["content"]["parts"] if candidates else []
    except (AttributeError, KeyError, IndexError, TypeError) as e:
        raise ServiceError(f"Malformed image generation response: {e}") from e

    for part in parts:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        if not inline or not inline.get("data"):
            continue
        try:
            raw = base64.b64decode(inline["data"])
            with PIL.Image.open(io.BytesIO(raw)) as pil_image:
                pil_image.load()
                return Image.from_pil(pil_image)
        except (ValueError, OSError) as e:
            raise ServiceError(f"Could not decode generated image: {e}") from e

    reason = ""
    if isinstance(data, dict):
        feedback = data.get("promptFeedback") or {}
        reason = feedback.get("blockReason", "")
    detail = f" (blocked: {reason})" if reason else ""
    raise ServiceError(f"Image generation response contained no image{detail}")


class GeminiImageService(ImageGenerationService):
    """Image generation through the Gemini ``generateContent`` REST API.

    Args:
        config: Supplies ``gemini_model``, ``gemini_endpoint`` and ``request_timeout``.
        session: Optional ``requests.Session`` (useful for connection reuse and tests).
        logger: Logger for request diagnostics.
    """

    name = "Gemini"

    def __init__(
        self,
        config: PixelforgeConfig,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._logger = logger or logging.getLogger(__name__)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pixelforge-gemini")

    @property
    def url(self) -> str:
        base = self._config.gemini_endpoint.rstrip("/")
        return f"{base}/models/{self._config.gemini_model}:generateContent"

    def generate_image(
        self,
        prompt: str,
        reference_image: Image,
        temperature: float,
        aspect_ratio: str,
        api_key: str,
    ) -> Future[Image]:
        payload = build_payload(prompt, reference_image, temperature, aspect_ratio)
        self._logger.info(
            "Submitting image generation (model=%s, aspect=%s, temperature=%.2f)",
            self._config.gemini_model,
            aspect_ratio,
            temperature,
        )
        return self._executor.submit(self._post, payload, api_key)

    def _post(self, payload: dict, api_key: str) -> Image:
        headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}
        try:
            response = self._session.post(
                self.url, json=payload, headers=headers, timeout=self._config.request_timeout
            )
        except requests.RequestException as e:
            raise ServiceError(f"Image generation request failed: {e}") from e

        if response.status_code != 200:
            raise ServiceError(
                f"Image generation failed with status {response.status_code}: "
                f"{response.text[:_MAX_ERROR_BODY]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ServiceError(f"Image generation returned invalid JSON: {e}") from e

        image = parse_image_response(data)
        self._logger.info("Received generated image %dx%d", image.width, image.height)
        return image

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._session.close()

    def __enter__(self) -> GeminiImageService:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
