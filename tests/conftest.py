"""Shared pytest fixtures for Pixelforge tests."""

from __future__ import annotations

import shutil
import tempfile
from concurrent.futures import Future
from pathlib import Path
from typing import Generator

import pytest

from pixelforge.core.collaborators import ConfigCredentialLookup, ImageGenerationService
from pixelforge.core.config import PixelforgeConfig
from pixelforge.core.models import GenerationSettings, GenerationTemplate, Resolution
from pixelforge.core.palette import ColorPalette, PaletteLibrary
from pixelforge.core.pipeline import GenerationPipeline
from pixelforge.core.processing import ImageProcessingEngine
from pixelforge.core.types import Color, Image

BLACK = Color(0.0, 0.0, 0.0)
WHITE = Color(1.0, 1.0, 1.0)
RED = Color(1.0, 0.0, 0.0)
GREEN = Color(0.0, 1.0, 0.0)
BLUE = Color(0.0, 0.0, 1.0)
YELLOW = Color(1.0, 1.0, 0.0)


class FakeImageService(ImageGenerationService):
    """In-memory image service whose futures are resolved by the test.

    Args:
        image: Image returned when a call is completed successfully.
        auto_complete: Resolve each future immediately inside ``generate_image``.
        cancellable: When False, futures are marked running so ``cancel()``
            has no effect, like a request already on the wire.
    """

    name = "Fake"

    def __init__(
        self,
        image: Image | None = None,
        auto_complete: bool = True,
        cancellable: bool = True,
    ) -> None:
        self.image = image if image is not None else Image.solid(16, 16, RED)
        self.auto_complete = auto_complete
        self.cancellable = cancellable
        self.calls: list[dict] = []
        self.futures: list[Future] = []

    def generate_image(self, prompt, reference_image, temperature, aspect_ratio, api_key):
        self.calls.append(
            {
                "prompt": prompt,
                "reference_image": reference_image,
                "temperature": temperature,
                "aspect_ratio": aspect_ratio,
                "api_key": api_key,
            }
        )
        future: Future = Future()
        if not self.cancellable:
            future.set_running_or_notify_cancel()
        self.futures.append(future)
        if self.auto_complete:
            future.set_result(self.image)
        return future

    def complete(self, index: int = -1, image: Image | None = None) -> None:
        self.futures[index].set_result(image if image is not None else self.image)

    def fail(self, error: BaseException, index: int = -1) -> None:
        self.futures[index].set_exception(error)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(monkeypatch) -> PixelforgeConfig:
    """Create a test configuration that ignores the environment and .env file."""
    monkeypatch.delenv("PIXELFORGE_API_KEY", raising=False)
    return PixelforgeConfig(
        _env_file=None,
        api_key="test-key",
        display_scale=2,
        default_dither_mode="none",
    )


@pytest.fixture
def engine() -> ImageProcessingEngine:
    return ImageProcessingEngine()


@pytest.fixture
def bw_palette() -> ColorPalette:
    """Two-color palette: black first, then white."""
    return ColorPalette("bw", [BLACK, WHITE])


@pytest.fixture
def rgby_image() -> Image:
    """2x2 image laid out as [R, G] / [B, Y]."""
    return Image.from_pixels(2, 2, [RED, GREEN, BLUE, YELLOW])


@pytest.fixture
def reference_image_path(temp_dir: Path) -> Path:
    """Write an 8x8 grayscale gradient PNG and return its path."""
    image = Image.blank(8, 8)
    for y in range(8):
        for x in range(8):
            v = (x + y) / 14.0
            image.set_pixel(x, y, Color(v, v, v))
    path = temp_dir / "reference.png"
    image.to_pil().save(path)
    return path


@pytest.fixture
def template(reference_image_path: Path) -> GenerationTemplate:
    return GenerationTemplate(
        reference_image_path=str(reference_image_path),
        base_prompt="A knight sprite",
        target_resolution=Resolution(4, 4),
        palette_name="1-bit",
    )


@pytest.fixture
def settings() -> GenerationSettings:
    return GenerationSettings(temperature=0.7, detail_prompt="facing left")


@pytest.fixture
def fake_service() -> FakeImageService:
    return FakeImageService()


@pytest.fixture
def pending_service() -> FakeImageService:
    """Service whose futures stay pending until the test resolves them."""
    return FakeImageService(auto_complete=False)


@pytest.fixture
def make_pipeline(test_config: PixelforgeConfig):
    """Factory building a pipeline around a given service."""

    def _make(service: ImageGenerationService, **kwargs) -> GenerationPipeline:
        kwargs.setdefault("palettes", PaletteLibrary())
        kwargs.setdefault("credentials", ConfigCredentialLookup(test_config))
        kwargs.setdefault("display_scale", test_config.display_scale)
        return GenerationPipeline(service=service, **kwargs)

    return _make
