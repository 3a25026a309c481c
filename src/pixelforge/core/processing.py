"""Deterministic image transformations used by the generation pipeline.

:class:`ImageProcessingEngine` groups the pure pixel operations the
pipeline needs.  None of them perform I/O or keep state between calls, and
none of them modify their input: every operation works on a fresh copy and
returns a new :class:`~pixelforge.core.types.Image`.

Operations
----------
conform_to_palette
    Replace every pixel with its nearest palette color, either independently
    (``DitherMode.NONE``) or with Floyd-Steinberg error diffusion
    (``DitherMode.FLOYD_STEINBERG``).
pixelate
    Nearest-neighbour downsample to an exact target size.  One source pixel
    per destination pixel, no averaging.
upscale
    Integer block replication.  Each source pixel becomes a solid
    ``factor x factor`` block, so hard pixel edges survive.

Determinism
-----------
Identical inputs always produce byte-identical outputs.  Palette distance
ties resolve to the earliest palette entry and the dithering scan order is
fixed (row-major, left to right).
"""

from __future__ import annotations

import logging
from enum import Enum

import numpy as np

from .errors import ProcessingError
from .models import Resolution
from .palette import ColorPalette
from .result import Result
from .types import Image

# Floyd-Steinberg diffusion kernel: (dx, dy, weight).
_FLOYD_STEINBERG_KERNEL = (
    (1, 0, 7.0 / 16.0),
    (-1, 1, 3.0 / 16.0),
    (0, 1, 5.0 / 16.0),
    (1, 1, 1.0 / 16.0),
)


class DitherMode(str, Enum):
    """How quantization error is handled during palette conformance."""

    NONE = "none"
    FLOYD_STEINBERG = "floyd_steinberg"


class ImageProcessingEngine:
    """Pure palette and resampling operations.

    Args:
        logger: Logger for debug output.  Defaults to this module's logger.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    # -- Utilities ----------------------------------------------------------

    def validate_image(self, image: Image | None) -> Result[Image]:
        """Reject missing or zero-dimension images."""
        if image is None:
            return Result.err(ProcessingError("Image is missing"))
        if image.is_empty():
            return Result.err(
                ProcessingError(f"Image has invalid dimensions {image.width}x{image.height}")
            )
        return Result.ok(image)

    def copy_image(self, image: Image) -> Image:
        """Return a deep copy that shares no pixel memory with ``image``."""
        return image.copy()

    # -- Palette conformance ------------------------------------------------

    def conform_to_palette(
        self,
        image: Image | None,
        palette: ColorPalette,
        mode: DitherMode = DitherMode.NONE,
    ) -> Result[Image]:
        """Map every pixel of ``image`` onto ``palette``.

        Args:
            image: Source image (left untouched).
            palette: Non-empty palette to conform to.
            mode: ``DitherMode.NONE`` or ``DitherMode.FLOYD_STEINBERG``.

        Returns:
            A new image containing only palette colors.
        """
        checked = self.validate_image(image)
        if checked.is_err:
            return checked

        palette_check = palette.validate()
        if palette_check.is_err:
            return Result.err(palette_check.error)

        mode = DitherMode(mode)
        self._logger.debug(
            "Conforming %s to palette '%s' (%d colors, mode=%s)",
            image,
            palette.name,
            len(palette),
            mode.value,
        )

        if mode is DitherMode.FLOYD_STEINBERG:
            return Result.ok(self._conform_floyd_steinberg(image, palette))
        return Result.ok(self._conform_nearest(image, palette))

    def _conform_nearest(self, image: Image, palette: ColorPalette) -> Image:
        rgb = palette.rgb_array()
        colors = np.array([c.as_tuple() for c in palette.colors], dtype=np.float64)

        flat = image.pixels.reshape((-1, 4))[:, :3]
        # (pixels, palette) distance matrix; argmin picks the first minimum.
        diff = flat[:, np.newaxis, :] - rgb[np.newaxis, :, :]
        distances = np.sqrt(np.sum(diff * diff, axis=2))
        indices = np.argmin(distances, axis=1)

        return Image(colors[indices].reshape(image.pixels.shape))

    def _conform_floyd_steinberg(self, image: Image, palette: ColorPalette) -> Image:
        rgb = palette.rgb_array()
        colors = np.array([c.as_tuple() for c in palette.colors], dtype=np.float64)

        work = image.pixels.copy()
        height, width = work.shape[:2]

        for y in range(height):
            for x in range(width):
                old = work[y, x, :3].copy()
                index = palette.nearest_index(old[0], old[1], old[2], rgb)
                work[y, x] = colors[index]

                error = old - rgb[index]
                for dx, dy, weight in _FLOYD_STEINBERG_KERNEL:
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < width and ny < height:
                        work[ny, nx, :3] = np.clip(work[ny, nx, :3] + error * weight, 0.0, 1.0)

        return Image(work)

    # -- Resampling ---------------------------------------------------------

    def pixelate(self, image: Image | None, target_size: Resolution) -> Result[Image]:
        """Nearest-neighbour downsample to exactly ``target_size``.

        Destination pixel ``(x, y)`` copies source pixel
        ``(floor(x / tw * sw), floor(y / th * sh))``, clamped to the source.
        """
        if target_size.width <= 0 or target_size.height <= 0:
            return Result.err(ProcessingError(f"Invalid pixelate target size {target_size}"))

        checked = self.validate_image(image)
        if checked.is_err:
            return checked

        src_w, src_h = image.width, image.height
        tw, th = target_size.width, target_size.height

        xs = np.floor(np.arange(tw, dtype=np.float64) / tw * src_w).astype(np.intp)
        ys = np.floor(np.arange(th, dtype=np.float64) / th * src_h).astype(np.intp)
        xs = np.clip(xs, 0, src_w - 1)
        ys = np.clip(ys, 0, src_h - 1)

        self._logger.debug("Pixelating %s -> %s", image, target_size)
        return Result.ok(Image(image.pixels[ys][:, xs]))

    def upscale(self, image: Image | None, factor: int) -> Result[Image]:
        """Replicate every pixel into a solid ``factor x factor`` block."""
        if isinstance(factor, bool) or not isinstance(factor, (int, np.integer)):
            return Result.err(ProcessingError(f"Upscale factor must be an integer, got {factor!r}"))
        if factor <= 0:
            return Result.err(ProcessingError(f"Upscale factor must be positive, got {factor}"))

        checked = self.validate_image(image)
        if checked.is_err:
            return checked

        if factor == 1:
            return Result.ok(self.copy_image(image))

        pixels = np.repeat(np.repeat(image.pixels, factor, axis=0), factor, axis=1)
        self._logger.debug("Upscaled %s by %dx", image, factor)
        return Result.ok(Image(pixels))
