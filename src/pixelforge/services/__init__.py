"""Concrete external services used by the generation pipeline."""

from pixelforge.services.gemini import GeminiImageService

__all__ = ["GeminiImageService"]
