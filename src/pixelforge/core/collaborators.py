"""Interfaces for the collaborators the generation pipeline consumes.

The pipeline never reaches into global state to find its dependencies.
Instead it is constructed with one object per collaborator, each
implementing one of the abstract base classes below:

- :class:`ImageGenerationService`: the external generative-image service.
  Its single call is the pipeline's only suspension point and therefore
  returns a :class:`concurrent.futures.Future`.
- :class:`PaletteLookup`: resolves a palette name to a
  :class:`~pixelforge.core.palette.ColorPalette`.
- :class:`CredentialLookup`: provides the stored service credential.

Concrete implementations live next to the concerns they cover:
:class:`~pixelforge.core.palette.PaletteLibrary`,
:class:`ConfigCredentialLookup` (below) and
:class:`~pixelforge.services.gemini.GeminiImageService`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import TYPE_CHECKING

from .errors import NotFoundError
from .result import Result

if TYPE_CHECKING:
    from .config import PixelforgeConfig
    from .palette import ColorPalette
    from .types import Image


class ImageGenerationService(ABC):
    """Abstract external image-generation service.

    Implementations must not block the calling thread: the returned future
    is resolved later with the generated image, or with an exception whose
    message describes the failure.
    """

    name: str = "Image Generation Service"

    @abstractmethod
    def generate_image(
        self,
        prompt: str,
        reference_image: Image,
        temperature: float,
        aspect_ratio: str,
        api_key: str,
    ) -> Future[Image]:
        """Start generating an image and return immediately.

        Args:
            prompt: Combined text prompt.
            reference_image: Palette-conformed reference image.
            temperature: Sampling temperature in ``[0, 2]``.
            aspect_ratio: Reduced ratio string such as ``"1:1"`` or ``"16:9"``.
            api_key: Credential from the :class:`CredentialLookup`.

        Returns:
            Future resolving to the generated :class:`Image`.
        """


class PaletteLookup(ABC):
    """Resolves palette names to palettes."""

    @abstractmethod
    def load_palette(self, name: str) -> Result[ColorPalette]:
        """Return the named palette or a ``NotFoundError`` result."""


class CredentialLookup(ABC):
    """Provides the stored credential for the image-generation service."""

    @abstractmethod
    def load_credential(self) -> Result[str]:
        """Return the credential or a ``NotFoundError`` result."""


class ConfigCredentialLookup(CredentialLookup):
    """Reads the API key from :class:`~pixelforge.core.config.PixelforgeConfig`.

    The key is read on every call so that a config object updated at
    runtime is honoured by the next generation.
    """

    def __init__(self, config: PixelforgeConfig) -> None:
        self._config = config

    def load_credential(self) -> Result[str]:
        secret = self._config.api_key
        key = secret.get_secret_value().strip() if secret is not None else ""
        if not key:
            return Result.err(
                NotFoundError("API key not configured. Set PIXELFORGE_API_KEY or add it to .env")
            )
        return Result.ok(key)
