"""Core functionality for pixel-art generation.

This module provides the core components for Pixelforge:

- **Result** / error taxonomy: explicit success/error values for every fallible step
- **Color** / **Image**: float RGBA pixel data
- **ColorPalette** / **PaletteLibrary**: reference colors and named palette lookup
- **ImageProcessingEngine**: palette conformance, pixelation and upscaling
- **GenerationPipeline**: the stateful orchestrator
- **PixelforgeConfig**: configuration management using Pydantic Settings

Architecture Overview
---------------------
1. **Data Layer** (result.py, errors.py, types.py, models.py)
2. **Algorithm Layer** (palette.py, processing.py, prompt_builder.py)
3. **Collaborator Layer** (collaborators.py, image_io.py, observers.py)
4. **Orchestration Layer** (pipeline.py)

Usage Example
-------------
    from pixelforge.core import (
        GenerationPipeline, GenerationSettings, GenerationTemplate, Resolution, config,
    )

    pipeline = GenerationPipeline.from_config(config)
    template = GenerationTemplate(
        reference_image_path="refs/knight.png",
        base_prompt="A knight sprite",
        target_resolution=Resolution(32, 32),
        palette_name="PICO-8",
    )
    result = pipeline.generate(template, GenerationSettings()).result()
"""

from pixelforge.core.collaborators import (
    ConfigCredentialLookup,
    CredentialLookup,
    ImageGenerationService,
    PaletteLookup,
)
from pixelforge.core.config import PixelforgeConfig, config, configure_logging
from pixelforge.core.errors import (
    ImageIOError,
    NotFoundError,
    PixelforgeError,
    ProcessingError,
    ServiceError,
    StateError,
    ValidationError,
)
from pixelforge.core.models import (
    GenerationResult,
    GenerationSettings,
    GenerationTemplate,
    PipelineState,
    Progress,
    Resolution,
)
from pixelforge.core.observers import CallbackObserver, PipelineObserver
from pixelforge.core.palette import PRESET_PALETTES, ColorPalette, PaletteLibrary
from pixelforge.core.pipeline import GenerationPipeline
from pixelforge.core.processing import DitherMode, ImageProcessingEngine
from pixelforge.core.result import Result
from pixelforge.core.types import Color, Image

__all__ = [
    "CallbackObserver",
    "Color",
    "ColorPalette",
    "ConfigCredentialLookup",
    "CredentialLookup",
    "DitherMode",
    "GenerationPipeline",
    "GenerationResult",
    "GenerationSettings",
    "GenerationTemplate",
    "Image",
    "ImageGenerationService",
    "ImageIOError",
    "ImageProcessingEngine",
    "NotFoundError",
    "PRESET_PALETTES",
    "PaletteLibrary",
    "PaletteLookup",
    "PipelineObserver",
    "PipelineState",
    "PixelforgeConfig",
    "PixelforgeError",
    "ProcessingError",
    "Progress",
    "Resolution",
    "Result",
    "ServiceError",
    "StateError",
    "ValidationError",
    "config",
    "configure_logging",
]
