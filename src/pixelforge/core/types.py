"""Pixel data types shared by every pipeline stage.

An :class:`Image` is a 2D grid of RGBA colors with float channels in
``[0, 1]``.  Internally it is a ``numpy`` array of shape
``(height, width, 4)`` and dtype ``float64``, which keeps the palette and
resampling algorithms exact and deterministic.

Ownership
---------
Every transformation in :mod:`pixelforge.core.processing` returns a *new*
``Image``.  Use :meth:`Image.copy` whenever an image is handed to code that
may mutate it; copies never share their pixel buffer with the original.
The constructor also copies the array it is given.

Pillow Interop
--------------
Images enter the pipeline from disk (reference images) and from the
generation service (PNG bytes), both decoded with Pillow.
:meth:`Image.from_pil` and :meth:`Image.to_pil` convert in both directions
using 8-bit RGBA.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
import PIL.Image


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


@dataclass(frozen=True)
class Color:
    """An RGBA color with float channels in ``[0, 1]``."""

    r: float
    g: float
    b: float
    a: float = 1.0

    @classmethod
    def from_hex(cls, code: str) -> Color:
        """Parse ``#rgb``, ``#rrggbb`` or ``#rrggbbaa`` (leading ``#`` optional).

        Raises:
            ValueError: If the code is not valid hexadecimal of a supported length.
        """
        s = code.strip().lstrip("#")
        if len(s) == 3:
            s = "".join(c * 2 for c in s)
        if len(s) not in (6, 8):
            raise ValueError(f"Invalid hex color: {code!r}")
        try:
            channels = [int(s[i : i + 2], 16) / 255.0 for i in range(0, len(s), 2)]
        except ValueError as e:
            raise ValueError(f"Invalid hex color: {code!r}") from e
        return cls(*channels)

    def to_rgba8(self) -> tuple[int, int, int, int]:
        return tuple(int(round(_clamp01(c) * 255)) for c in self.as_tuple())  # type: ignore[return-value]

    def to_hex(self, include_alpha: bool = False) -> str:
        r, g, b, a = self.to_rgba8()
        code = f"#{r:02x}{g:02x}{b:02x}"
        if include_alpha:
            code += f"{a:02x}"
        return code

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.r, self.g, self.b, self.a)

    def distance_to(self, other: Color) -> float:
        """Euclidean distance in RGB space (alpha is ignored)."""
        dr = self.r - other.r
        dg = self.g - other.g
        db = self.b - other.b
        return float(np.sqrt(dr * dr + dg * dg + db * db))


class Image:
    """A 2D grid of :class:`Color` values backed by a float64 numpy array.

    Attributes:
        pixels: Array of shape ``(height, width, 4)``, RGBA in ``[0, 1]``.
    """

    __slots__ = ("pixels",)

    def __init__(self, pixels: np.ndarray) -> None:
        array = np.array(pixels, dtype=np.float64, copy=True)
        if array.ndim != 3 or array.shape[2] != 4:
            raise ValueError(f"Image pixels must have shape (height, width, 4), got {array.shape}")
        self.pixels = array

    # -- Construction -------------------------------------------------------

    @classmethod
    def blank(cls, width: int, height: int) -> Image:
        """Create a fully transparent black image."""
        return cls(np.zeros((max(0, height), max(0, width), 4), dtype=np.float64))

    @classmethod
    def solid(cls, width: int, height: int, color: Color) -> Image:
        pixels = np.empty((height, width, 4), dtype=np.float64)
        pixels[:, :] = color.as_tuple()
        return cls(pixels)

    @classmethod
    def from_pixels(cls, width: int, height: int, colors: Sequence[Color]) -> Image:
        """Build an image from a row-major list of colors.

        Raises:
            ValueError: If ``len(colors) != width * height``.
        """
        if len(colors) != width * height:
            raise ValueError(f"Expected {width * height} colors for {width}x{height}, got {len(colors)}")
        pixels = np.array([c.as_tuple() for c in colors], dtype=np.float64)
        return cls(pixels.reshape((height, width, 4)))

    @classmethod
    def from_pil(cls, image: PIL.Image.Image) -> Image:
        rgba = np.asarray(image.convert("RGBA"), dtype=np.float64) / 255.0
        return cls(rgba)

    # -- Accessors ----------------------------------------------------------

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def get_pixel(self, x: int, y: int) -> Color:
        r, g, b, a = self.pixels[y, x]
        return Color(float(r), float(g), float(b), float(a))

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        self.pixels[y, x] = color.as_tuple()

    def iter_colors(self) -> Iterable[Color]:
        """Yield every pixel in raster order."""
        for y in range(self.height):
            for x in range(self.width):
                yield self.get_pixel(x, y)

    def unique_colors(self) -> set[Color]:
        return set(self.iter_colors())

    # -- Conversion ---------------------------------------------------------

    def copy(self) -> Image:
        return Image(self.pixels)

    def to_pil(self) -> PIL.Image.Image:
        rgba8 = np.rint(np.clip(self.pixels, 0.0, 1.0) * 255.0).astype(np.uint8)
        return PIL.Image.fromarray(rgba8)

    def tobytes(self) -> bytes:
        """Raw float64 pixel bytes, used for exact equality checks."""
        return self.pixels.tobytes()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Image):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Image({self.width}x{self.height})"
