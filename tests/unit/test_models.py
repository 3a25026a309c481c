"""Unit tests for generation data models."""

import pytest

from pixelforge.core.models import (
    GenerationResult,
    GenerationSettings,
    GenerationTemplate,
    PipelineState,
    Progress,
    Resolution,
)
from pixelforge.core.types import Color, Image


def _template(**overrides) -> GenerationTemplate:
    fields = {
        "reference_image_path": "ref.png",
        "base_prompt": "A knight",
        "target_resolution": Resolution(32, 32),
        "palette_name": "PICO-8",
    }
    fields.update(overrides)
    return GenerationTemplate(**fields)


class TestGenerationTemplate:
    """Tests for GenerationTemplate.validate."""

    def test_valid_template(self):
        _template().validate()  # Should not raise

    def test_empty_reference_path(self):
        with pytest.raises(ValueError, match="reference image path"):
            _template(reference_image_path=" ").validate()

    def test_empty_palette_name(self):
        with pytest.raises(ValueError, match="palette name"):
            _template(palette_name="").validate()

    @pytest.mark.parametrize("resolution", [Resolution(0, 32), Resolution(32, -1)])
    def test_non_positive_resolution(self, resolution):
        with pytest.raises(ValueError, match="Target resolution"):
            _template(target_resolution=resolution).validate()

    def test_empty_base_prompt_allowed(self):
        """An empty base prompt is allowed; the detail prompt may supply the text."""
        _template(base_prompt="").validate()


class TestGenerationSettings:
    """Tests for GenerationSettings.validate."""

    @pytest.mark.parametrize("temperature", [0.0, 1.0, 2.0])
    def test_temperature_in_range(self, temperature):
        GenerationSettings(temperature=temperature).validate()

    @pytest.mark.parametrize("temperature", [-0.1, 2.01])
    def test_temperature_out_of_range(self, temperature):
        with pytest.raises(ValueError, match="Temperature must be"):
            GenerationSettings(temperature=temperature).validate()

    def test_defaults(self):
        settings = GenerationSettings()
        assert settings.temperature == 1.0
        assert settings.detail_prompt == ""


class TestProgress:
    """Tests for Progress."""

    def test_percentage(self):
        assert Progress(2, 5, "x").percentage == 40.0

    def test_percentage_without_total(self):
        assert Progress(0, 0, "").percentage == 0.0

    def test_str(self):
        assert str(Progress(5, 5, "Complete")) == "[5/5] Complete"


class TestPipelineState:
    """Tests for PipelineState."""

    def test_terminal_states(self):
        assert PipelineState.COMPLETED.is_terminal
        assert PipelineState.ERROR.is_terminal
        assert not PipelineState.IDLE.is_terminal
        assert not PipelineState.PROCESSING.is_terminal


class TestGenerationResult:
    """Tests for GenerationResult."""

    def test_invalid_without_pixelated_image(self):
        assert not GenerationResult().is_valid()

    def test_final_image_defaults_to_pixelated(self):
        pixelated = Image.solid(2, 2, Color(1, 0, 0))
        result = GenerationResult(pixelated_image=pixelated)

        assert result.is_valid()
        assert result.final_image is pixelated

    def test_final_image_prefers_last_polish_iteration(self):
        first = Image.solid(2, 2, Color(0, 1, 0))
        last = Image.solid(2, 2, Color(0, 0, 1))
        result = GenerationResult(
            pixelated_image=Image.solid(2, 2, Color(1, 0, 0)),
            polish_iterations=[first, last],
        )

        assert result.final_image is last
