"""Reference image loading."""

from __future__ import annotations

import logging
from pathlib import Path

import PIL.Image
from PIL import UnidentifiedImageError

from .errors import ImageIOError
from .result import Result
from .types import Image

logger = logging.getLogger(__name__)


def load_reference_image(path: str | Path) -> Result[Image]:
    """Load an image file from disk as RGBA.

    Any format Pillow can decode is accepted.  Missing files, unreadable
    files and undecodable data all produce an ``ImageIOError`` result.
    """
    path = Path(path)
    if not path.is_file():
        return Result.err(ImageIOError(f"Reference image not found: {path}"))

    try:
        with PIL.Image.open(path) as pil_image:
            pil_image.load()
            image = Image.from_pil(pil_image)
    except (OSError, UnidentifiedImageError, ValueError) as e:
        logger.error(f"Failed to load reference image {path}: {e}")
        return Result.err(ImageIOError(f"Failed to load reference image {path.name}: {e}"))

    if image.is_empty():
        return Result.err(ImageIOError(f"Reference image {path.name} has no pixels"))

    logger.info(f"Loaded reference image {path} ({image.width}x{image.height})")
    return Result.ok(image)
