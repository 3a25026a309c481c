"""Unit tests for ColorPalette and PaletteLibrary."""

import json

import pytest

from pixelforge.core.errors import NotFoundError, ValidationError
from pixelforge.core.palette import PRESET_PALETTES, ColorPalette, PaletteLibrary
from pixelforge.core.types import Color

BLACK = Color(0.0, 0.0, 0.0)
WHITE = Color(1.0, 1.0, 1.0)
GRAY = Color(0.5, 0.5, 0.5)


class TestFindNearest:
    """Tests for ColorPalette.find_nearest."""

    def test_exact_match_returns_same_color(self):
        palette = ColorPalette("p", [BLACK, GRAY, WHITE])
        assert palette.find_nearest(GRAY).value == GRAY

    def test_empty_palette_fails(self):
        result = ColorPalette("empty").find_nearest(GRAY)

        assert result.is_err
        assert isinstance(result.error, NotFoundError)
        assert "empty palette" in str(result.error)

    def test_tie_resolves_to_first_entry(self):
        """Mid-gray is equidistant from black and white; black comes first."""
        assert ColorPalette("bw", [BLACK, WHITE]).find_nearest(GRAY).value == BLACK
        assert ColorPalette("wb", [WHITE, BLACK]).find_nearest(GRAY).value == WHITE

    def test_alpha_is_ignored(self):
        palette = ColorPalette("p", [BLACK, WHITE])
        assert palette.find_nearest(Color(0.9, 0.9, 0.9, 0.0)).value == WHITE

    def test_nearest_by_euclidean_distance(self):
        red = Color(1.0, 0.0, 0.0)
        dark_red = Color(0.5, 0.0, 0.0)
        palette = ColorPalette("reds", [red, dark_red, BLACK])

        assert palette.find_nearest(Color(0.6, 0.1, 0.0)).value == dark_red


class TestPaletteValidation:
    """Tests for ColorPalette.validate and construction."""

    def test_valid_palette(self):
        assert ColorPalette("bw", [BLACK, WHITE]).validate().is_ok

    def test_empty_name_fails(self):
        result = ColorPalette("  ", [BLACK]).validate()
        assert isinstance(result.error, ValidationError)

    def test_no_colors_fails(self):
        result = ColorPalette("empty").validate()
        assert isinstance(result.error, ValidationError)

    def test_construction_does_not_validate(self):
        assert len(ColorPalette("", [])) == 0

    def test_colors_are_immutable_tuple(self):
        colors = [BLACK]
        palette = ColorPalette("p", colors)
        colors.append(WHITE)

        assert palette.colors == (BLACK,)

    def test_from_hex(self):
        palette = ColorPalette.from_hex("bw", ["#000000", "#ffffff"])
        assert palette.colors == (BLACK, WHITE)


class TestPaletteLibrary:
    """Tests for PaletteLibrary lookup and file loading."""

    def test_presets_registered(self):
        library = PaletteLibrary()
        assert set(PRESET_PALETTES) <= set(library.names())
        assert len(library.load_palette("PICO-8").value) == 16

    def test_lookup_is_case_insensitive(self):
        library = PaletteLibrary()
        assert library.load_palette("game boy").value.name == "Game Boy"

    def test_unknown_palette(self):
        result = PaletteLibrary().load_palette("nope")

        assert isinstance(result.error, NotFoundError)
        assert "nope" in str(result.error)

    def test_without_presets(self):
        library = PaletteLibrary([ColorPalette("mine", [BLACK])], include_presets=False)
        assert library.names() == ["mine"]

    def test_register_replaces(self):
        library = PaletteLibrary(include_presets=False)
        library.register(ColorPalette("mine", [BLACK]))
        library.register(ColorPalette("MINE", [WHITE]))

        assert library.load_palette("mine").value.colors == (WHITE,)

    def test_load_file(self, temp_dir):
        path = temp_dir / "palettes.json"
        path.write_text(
            json.dumps({"palettes": [{"name": "Sunset", "colors": ["#2b0f54", "#ff8142"]}]})
        )
        library = PaletteLibrary(include_presets=False)

        result = library.load_file(path)

        assert result.is_ok
        assert [p.name for p in result.value] == ["Sunset"]
        assert len(library.load_palette("sunset").value) == 2

    def test_load_missing_file(self, temp_dir):
        result = PaletteLibrary().load_file(temp_dir / "missing.json")
        assert isinstance(result.error, NotFoundError)

    @pytest.mark.parametrize(
        "content",
        [
            "not json",
            json.dumps({"wrong": []}),
            json.dumps({"palettes": [{"name": "x", "colors": ["#zzzzzz"]}]}),
        ],
    )
    def test_load_malformed_file(self, temp_dir, content):
        path = temp_dir / "bad.json"
        path.write_text(content)

        result = PaletteLibrary().load_file(path)

        assert isinstance(result.error, ValidationError)
