"""Color palettes and palette lookup.

A :class:`ColorPalette` is an ordered, immutable set of reference colors.
Order matters: :meth:`ColorPalette.find_nearest` breaks distance ties in
favour of the color that appears first, which keeps palette conformance
deterministic.

Preset Palettes
---------------
A handful of well-known retro palettes ship with the library and are
registered in every :class:`PaletteLibrary` by default:

- ``PICO-8``: the 16-color fantasy console palette
- ``Game Boy``: four shades of green
- ``CGA``: CGA mode 4, palette 1 (high intensity)
- ``1-bit``: black and white

User Palettes
-------------
Additional palettes can be loaded from a JSON file::

    {
        "palettes": [
            {"name": "Sunset", "colors": ["#2b0f54", "#ab1f65", "#ff4f69", "#ff8142"]}
        ]
    }

Usage
-----
::

    library = PaletteLibrary()
    palette = library.load_palette("PICO-8").unwrap()
    nearest = palette.find_nearest(Color(0.5, 0.5, 0.5)).unwrap()
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from .collaborators import PaletteLookup
from .errors import NotFoundError, ValidationError
from .result import Result
from .types import Color


@dataclass(frozen=True)
class ColorPalette:
    """A named, ordered list of reference colors.

    Construction does not require the palette to be non-empty; call
    :meth:`validate` before using a palette for conformance.

    Attributes:
        name: Display name, used as the lookup key.
        colors: Reference colors in priority order.
    """

    name: str
    colors: tuple[Color, ...] = ()

    def __init__(self, name: str, colors: Iterable[Color] = ()) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "colors", tuple(colors))

    @classmethod
    def from_hex(cls, name: str, codes: Sequence[str]) -> ColorPalette:
        """Build a palette from hex color codes.

        Raises:
            ValueError: If any code is not a valid hex color.
        """
        return cls(name, [Color.from_hex(code) for code in codes])

    def __len__(self) -> int:
        return len(self.colors)

    def __contains__(self, color: object) -> bool:
        return color in self.colors

    def validate(self) -> Result[ColorPalette]:
        """Check that the palette is usable for conformance."""
        if not self.name or not self.name.strip():
            return Result.err(ValidationError("Palette name must not be empty"))
        if not self.colors:
            return Result.err(ValidationError(f"Palette '{self.name}' has no colors"))
        return Result.ok(self)

    def rgb_array(self) -> np.ndarray:
        """Return the palette's RGB channels as an ``(n, 3)`` float64 array."""
        return np.array([(c.r, c.g, c.b) for c in self.colors], dtype=np.float64).reshape((-1, 3))

    def nearest_index(self, r: float, g: float, b: float, rgb: np.ndarray | None = None) -> int:
        """Index of the closest palette color to ``(r, g, b)``.

        Uses Euclidean RGB distance; ``np.argmin`` returns the first minimum,
        so ties resolve to the earliest palette entry.  The palette must be
        non-empty.

        Args:
            r, g, b: Query color channels.
            rgb: Precomputed :meth:`rgb_array`, for callers in hot loops.
        """
        if rgb is None:
            rgb = self.rgb_array()
        diff = rgb - np.array((r, g, b), dtype=np.float64)
        distances = np.sqrt(np.sum(diff * diff, axis=1))
        return int(np.argmin(distances))

    def find_nearest(self, color: Color) -> Result[Color]:
        """Return the palette color closest to ``color`` (alpha ignored)."""
        if not self.colors:
            return Result.err(NotFoundError("empty palette"))
        return Result.ok(self.colors[self.nearest_index(color.r, color.g, color.b)])


PRESET_PALETTES: dict[str, tuple[str, ...]] = {
    "PICO-8": (
        "#000000", "#1d2b53", "#7e2553", "#008751",
        "#ab5236", "#5f574f", "#c2c3c7", "#fff1e8",
        "#ff004d", "#ffa300", "#ffec27", "#00e436",
        "#29adff", "#83769c", "#ff77a8", "#ffccaa",
    ),
    "Game Boy": ("#0f380f", "#306230", "#8bac0f", "#9bbc0f"),
    "CGA": ("#000000", "#55ffff", "#ff55ff", "#ffffff"),
    "1-bit": ("#000000", "#ffffff"),
}  # fmt: skip


class PaletteLibrary(PaletteLookup):
    """In-memory palette registry with case-insensitive lookup.

    Attributes:
        _palettes: Palettes keyed by lower-cased name.
    """

    def __init__(
        self,
        palettes: Iterable[ColorPalette] | None = None,
        include_presets: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._palettes: dict[str, ColorPalette] = {}

        if include_presets:
            for name, codes in PRESET_PALETTES.items():
                self.register(ColorPalette.from_hex(name, codes))

        for palette in palettes or ():
            self.register(palette)

    @staticmethod
    def _key(name: str) -> str:
        return name.strip().lower()

    def register(self, palette: ColorPalette) -> None:
        """Add or replace a palette.  Later registrations win."""
        key = self._key(palette.name)
        if key in self._palettes:
            self._logger.info("Replacing palette '%s'", palette.name)
        self._palettes[key] = palette

    def names(self) -> list[str]:
        return [p.name for p in self._palettes.values()]

    def load_palette(self, name: str) -> Result[ColorPalette]:
        palette = self._palettes.get(self._key(name or ""))
        if palette is None:
            available = ", ".join(self.names()) or "(none)"
            return Result.err(NotFoundError(f"Palette '{name}' not found. Available: {available}"))
        return Result.ok(palette)

    def load_file(self, path: Path) -> Result[list[ColorPalette]]:
        """Register every palette defined in a JSON palette file.

        Returns:
            The palettes that were loaded, or a ``NotFoundError`` /
            ``ValidationError`` if the file is missing or malformed.
        """
        path = Path(path)
        if not path.is_file():
            return Result.err(NotFoundError(f"Palette file not found: {path}"))

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            entries = data["palettes"]
            loaded = [ColorPalette.from_hex(entry["name"], entry["colors"]) for entry in entries]
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            self._logger.error("Failed to read palette file %s: %s", path, e)
            return Result.err(ValidationError(f"Invalid palette file {path.name}: {e}"))

        for palette in loaded:
            self.register(palette)
        self._logger.info("Loaded %d palettes from %s", len(loaded), path)
        return Result.ok(loaded)
