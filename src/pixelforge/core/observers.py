"""Lifecycle hooks for observing a generation pipeline.

Observers are passed to :class:`~pixelforge.core.pipeline.GenerationPipeline`
at construction time and are notified, in order, at each lifecycle point:

- ``on_state_changed(state)``: after every state transition
- ``on_progress(progress)``: after every progress advance
- ``on_completed(result)``: once per successful invocation
- ``on_failed(error)``: once per failed invocation

Hooks run on whichever thread advances the pipeline: the caller's thread for
the synchronous stages and the service's worker thread after the external
call completes.  An exception raised by a hook is logged and ignored.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .errors import PixelforgeError
    from .models import GenerationResult, PipelineState, Progress


class PipelineObserver:
    """Base class for pipeline observers.  Every hook is a no-op by default."""

    name = "PipelineObserver"

    def __init__(self) -> None:
        self.enabled = True

    def on_state_changed(self, state: PipelineState) -> None:
        pass

    def on_progress(self, progress: Progress) -> None:
        pass

    def on_completed(self, result: GenerationResult) -> None:
        pass

    def on_failed(self, error: PixelforgeError) -> None:
        pass


class CallbackObserver(PipelineObserver):
    """Observer that forwards hooks to plain callables.

    Example:
        >>> observer = CallbackObserver(on_progress=lambda p: print(p.percentage))
    """

    name = "CallbackObserver"

    def __init__(
        self,
        on_state_changed: Callable[[PipelineState], None] | None = None,
        on_progress: Callable[[Progress], None] | None = None,
        on_completed: Callable[[GenerationResult], None] | None = None,
        on_failed: Callable[[PixelforgeError], None] | None = None,
    ) -> None:
        super().__init__()
        self._on_state_changed = on_state_changed
        self._on_progress = on_progress
        self._on_completed = on_completed
        self._on_failed = on_failed

    def on_state_changed(self, state: PipelineState) -> None:
        if self._on_state_changed is not None:
            self._on_state_changed(state)

    def on_progress(self, progress: Progress) -> None:
        if self._on_progress is not None:
            self._on_progress(progress)

    def on_completed(self, result: GenerationResult) -> None:
        if self._on_completed is not None:
            self._on_completed(result)

    def on_failed(self, error: PixelforgeError) -> None:
        if self._on_failed is not None:
            self._on_failed(error)
