"""Pixelforge - palette-constrained pixel-art generation pipeline."""

__version__ = "0.1.0"

from pixelforge.core import (
    Color,
    ColorPalette,
    DitherMode,
    GenerationPipeline,
    GenerationResult,
    GenerationSettings,
    GenerationTemplate,
    Image,
    ImageProcessingEngine,
    PaletteLibrary,
    PipelineState,
    PixelforgeConfig,
    Resolution,
    Result,
    config,
)

__all__ = [
    "Color",
    "ColorPalette",
    "DitherMode",
    "GenerationPipeline",
    "GenerationResult",
    "GenerationSettings",
    "GenerationTemplate",
    "Image",
    "ImageProcessingEngine",
    "PaletteLibrary",
    "PipelineState",
    "PixelforgeConfig",
    "Resolution",
    "Result",
    "config",
]
