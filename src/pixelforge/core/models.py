"""Data models for generation inputs, outputs and pipeline status."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .types import Image

MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0
DEFAULT_TEMPERATURE = 1.0


class PipelineState(str, Enum):
    """Lifecycle state of a :class:`~pixelforge.core.pipeline.GenerationPipeline`.

    Legal transitions::

        IDLE | COMPLETED | ERROR  --generate()-->  PROCESSING
        PROCESSING  --success-->  COMPLETED
        PROCESSING  --failure-->  ERROR
        PROCESSING  --cancel()--> IDLE
    """

    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.COMPLETED, PipelineState.ERROR)


@dataclass(frozen=True)
class Resolution:
    """Pixel dimensions of an image."""

    width: int
    height: int

    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass
class GenerationTemplate:
    """Reusable description of an asset to generate.

    Attributes:
        reference_image_path: Path to the reference image on disk.
        base_prompt: Main prompt text.
        target_resolution: Final pixel-art resolution.
        palette_name: Name of the palette to conform to.
    """

    reference_image_path: str
    base_prompt: str
    target_resolution: Resolution
    palette_name: str

    def validate(self) -> None:
        """Validate template fields.

        Raises:
            ValueError: If any field is empty or out of range, with descriptive message
        """
        if not str(self.reference_image_path or "").strip():
            raise ValueError("Template reference image path must not be empty")

        # The base prompt may be empty when the settings carry a detail
        # prompt; build_prompt() rejects the case where both are empty.
        if self.base_prompt is None:
            raise ValueError("Template base prompt must not be None")

        if not self.target_resolution.is_valid():
            raise ValueError(
                f"Target resolution must be positive, got {self.target_resolution}"
            )

        if not (self.palette_name or "").strip():
            raise ValueError("Template palette name must not be empty")


@dataclass
class GenerationSettings:
    """Per-run generation settings.

    Attributes:
        temperature: Sampling temperature passed to the service (0.0-2.0).
        detail_prompt: Optional extra prompt text appended to the base prompt.
    """

    temperature: float = DEFAULT_TEMPERATURE
    detail_prompt: str = ""

    def validate(self) -> None:
        """Validate settings.

        Raises:
            ValueError: If temperature is out of range
        """
        if not MIN_TEMPERATURE <= self.temperature <= MAX_TEMPERATURE:
            raise ValueError(
                f"Temperature must be {MIN_TEMPERATURE}-{MAX_TEMPERATURE}, got {self.temperature}"
            )


@dataclass(frozen=True)
class Progress:
    """Progress of the current (or most recent) pipeline invocation."""

    current_step: int = 0
    total_steps: int = 0
    message: str = ""

    @property
    def percentage(self) -> float:
        if self.total_steps <= 0:
            return 0.0
        return self.current_step / self.total_steps * 100.0

    def __str__(self) -> str:
        return f"[{self.current_step}/{self.total_steps}] {self.message}"


@dataclass
class GenerationResult:
    """Images produced by one successful pipeline run.

    ``upscaled_image`` is the display-resolution copy of
    ``pixelated_image``.  ``polish_iterations`` holds the outputs of any
    later refinement passes, newest last.
    """

    original_image: Image | None = None
    conformed_image: Image | None = None
    generated_image: Image | None = None
    pixelated_image: Image | None = None
    upscaled_image: Image | None = None
    polish_iterations: list[Image] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    def is_valid(self) -> bool:
        return self.pixelated_image is not None

    @property
    def final_image(self) -> Image | None:
        """Latest polish iteration, falling back to the pixelated image."""
        if self.polish_iterations:
            return self.polish_iterations[-1]
        return self.pixelated_image
