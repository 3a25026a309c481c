"""Configuration management for Pixelforge.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the PIXELFORGE_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (PIXELFORGE_* prefix)
2. .env file in the project root
3. Default values defined in PixelforgeConfig

Example .env file:
    PIXELFORGE_API_KEY=your-gemini-api-key
    PIXELFORGE_DISPLAY_SCALE=8
    PIXELFORGE_DEFAULT_DITHER_MODE=floyd_steinberg
    PIXELFORGE_PALETTES_FILE=palettes.json

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time for
scripts and interactive use.  Library components never read it implicitly:
the pipeline, the credential lookup and the service client all receive their
configuration through their constructors.

Usage Example
-------------
    from pixelforge.core.config import PixelforgeConfig, configure_logging

    configure_logging()
    cfg = PixelforgeConfig(display_scale=4)
    print(cfg.gemini_model)

Secrets
-------
``api_key`` is a ``SecretStr`` so it never appears in reprs or logs.  Use
:class:`~pixelforge.core.collaborators.ConfigCredentialLookup` to read it.
"""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class PixelforgeConfig(BaseSettings):
    """Main configuration for Pixelforge.

    Attributes
    ----------
    Credentials:
        api_key : SecretStr | None
            API key for the image-generation service

    Pipeline Settings:
        display_scale : int
            Integer factor used to upscale the pixelated image for display (1-64)
        default_dither_mode : Literal["none", "floyd_steinberg"]
            Dithering applied when conforming the reference image to the palette

    Palettes:
        palettes_file : Path | None
            Optional JSON file with user palettes, merged into the presets

    Service Settings:
        gemini_model : str
            Gemini model used for image generation
        gemini_endpoint : str
            Base URL of the Generative Language REST API
        request_timeout : float
            HTTP timeout in seconds for one generation request (1-600)

    Notes
    -----
    - Configuration is immutable after initialization
    - To modify config, set environment variables and restart the application

    Examples
    --------
        >>> cfg = PixelforgeConfig(display_scale=4, _env_file=None)
        >>> cfg.display_scale
        4
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PIXELFORGE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Credentials
    api_key: SecretStr | None = Field(
        default=None,
        description="API key for the image-generation service",
    )

    # Pipeline settings
    display_scale: int = Field(
        default=8,
        description="Integer upscale factor applied to the pixelated image for display",
        ge=1,
        le=64,
    )
    default_dither_mode: Literal["none", "floyd_steinberg"] = Field(
        default="floyd_steinberg",
        description="Dithering used when conforming the reference image to the palette",
    )

    # Palettes
    palettes_file: Path | None = Field(
        default=None,
        description="JSON file with additional palettes",
    )

    # Service settings
    gemini_model: str = Field(
        default="gemini-2.5-flash-image",
        description="Gemini model used for image generation",
    )
    gemini_endpoint: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Generative Language REST API",
    )
    request_timeout: float = Field(
        default=120.0,
        description="HTTP timeout in seconds for one generation request",
        ge=1.0,
        le=600.0,
    )


def configure_logging(level: int = logging.INFO) -> None:
    """Send log records to stderr using the standard Pixelforge format."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


# Global configuration instance
# Loads values from environment variables (PIXELFORGE_* prefix) and .env file.
config = PixelforgeConfig()
