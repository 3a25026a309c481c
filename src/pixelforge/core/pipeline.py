"""Generation pipeline orchestrator.

:class:`GenerationPipeline` turns a :class:`GenerationTemplate` and
:class:`GenerationSettings` into a :class:`GenerationResult` by running five
stages in order:

1. Load the reference image and the named palette.
2. Conform the reference image to the palette (optionally dithered).
3. Send the prompt and conformed image to the external image-generation
   service.  This is the only asynchronous step.
4. Pixelate the generated image to the template's target resolution.
5. Upscale the pixelated image by the display scale and assemble the result.

State Machine
-------------
::

    IDLE | COMPLETED | ERROR  --generate()-->  PROCESSING
    PROCESSING  --success-->  COMPLETED
    PROCESSING  --failure-->  ERROR
    PROCESSING  --cancel()--> IDLE

One pipeline instance is reused across invocations, but only one invocation
runs at a time: calling :meth:`GenerationPipeline.generate` while another
invocation is processing yields a ``StateError`` result.

Completion Channel
------------------
``generate()`` returns immediately with a :class:`concurrent.futures.Future`
that resolves to a :class:`~pixelforge.core.result.Result`.  Failures in
the synchronous stages resolve it before ``generate()`` returns; otherwise it
resolves when the service responds.  :meth:`GenerationPipeline.cancel`
cancels the future.

Invocation Epochs
-----------------
Every invocation gets a new epoch number.  The service completion handler is
bound to the epoch it was registered for; if that invocation was cancelled
or superseded by the time the response arrives, the response is logged and
discarded.  All state, progress and in-flight context changes happen under
one lock after an epoch check, so a stale invocation can never publish
progress or overwrite the state of a newer one.

Usage Example
-------------
::

    pipeline = GenerationPipeline.from_config(config)
    future = pipeline.generate(template, GenerationSettings(temperature=0.8))

    result = future.result(timeout=180)
    if result.is_ok:
        result.value.final_image.to_pil().save("sprite.png")
    else:
        print(result.error)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass
from datetime import datetime
from functools import partial

from .collaborators import (
    ConfigCredentialLookup,
    CredentialLookup,
    ImageGenerationService,
    PaletteLookup,
)
from .config import PixelforgeConfig
from .errors import PixelforgeError, ProcessingError, ServiceError, StateError, ValidationError
from .image_io import load_reference_image
from .models import (
    GenerationResult,
    GenerationSettings,
    GenerationTemplate,
    PipelineState,
    Progress,
)
from .observers import PipelineObserver
from .palette import PaletteLibrary
from .processing import DitherMode, ImageProcessingEngine
from .prompt_builder import aspect_ratio_for, build_prompt
from .result import Result
from .types import Image

TOTAL_STEPS = 5
DEFAULT_DISPLAY_SCALE = 8


@dataclass
class _InFlight:
    """Context owned by exactly one running invocation."""

    epoch: int
    completion: Future
    template: GenerationTemplate | None = None
    original_image: Image | None = None
    conformed_image: Image | None = None
    service_future: Future | None = None


class GenerationPipeline:
    """Stateful, reusable orchestrator for single-asset generation.

    Attributes:
        _service: External image-generation service.
        _palettes: Palette lookup used to resolve ``template.palette_name``.
        _credentials: Source of the service API key.
        _engine: Pixel operations (conform, pixelate, upscale).
        _display_scale: Integer upscale factor for the display image.
        _dither_mode: Dithering used when conforming the reference image.
        _observers: Lifecycle hook receivers.
        _state: Current :class:`PipelineState`.
        _progress: Latest :class:`Progress`.
        _epoch: Identity of the newest invocation.
        _in_flight: Context of the running invocation, or ``None``.
    """

    def __init__(
        self,
        service: ImageGenerationService,
        palettes: PaletteLookup,
        credentials: CredentialLookup,
        engine: ImageProcessingEngine | None = None,
        display_scale: int = DEFAULT_DISPLAY_SCALE,
        dither_mode: DitherMode = DitherMode.FLOYD_STEINBERG,
        observers: Iterable[PipelineObserver] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if display_scale <= 0:
            raise ValueError(f"display_scale must be positive, got {display_scale}")

        self._logger = logger or logging.getLogger(__name__)
        self._service = service
        self._palettes = palettes
        self._credentials = credentials
        self._engine = engine or ImageProcessingEngine(logger=self._logger)
        self._display_scale = display_scale
        self._dither_mode = DitherMode(dither_mode)
        self._observers: list[PipelineObserver] = list(observers or [])

        self._lock = threading.RLock()
        self._state = PipelineState.IDLE
        self._progress = Progress(0, TOTAL_STEPS, "Idle")
        self._epoch = 0
        self._in_flight: _InFlight | None = None

        self._logger.info(
            "Initialized GenerationPipeline (service=%s, display_scale=%d, dither=%s)",
            getattr(service, "name", type(service).__name__),
            display_scale,
            self._dither_mode.value,
        )

    @classmethod
    def from_config(
        cls,
        config: PixelforgeConfig,
        service: ImageGenerationService | None = None,
        observers: Iterable[PipelineObserver] | None = None,
        logger: logging.Logger | None = None,
    ) -> GenerationPipeline:
        """Build a pipeline wired to the default collaborators.

        Palettes come from the presets plus ``config.palettes_file``; the API
        key comes from ``config.api_key``; the service defaults to
        :class:`~pixelforge.services.gemini.GeminiImageService`.
        """
        palettes = PaletteLibrary(logger=logger)
        if config.palettes_file is not None:
            loaded = palettes.load_file(config.palettes_file)
            if loaded.is_err:
                (logger or logging.getLogger(__name__)).warning(
                    "Continuing with preset palettes only: %s", loaded.error
                )

        if service is None:
            from pixelforge.services.gemini import GeminiImageService

            service = GeminiImageService(config, logger=logger)

        return cls(
            service=service,
            palettes=palettes,
            credentials=ConfigCredentialLookup(config),
            display_scale=config.display_scale,
            dither_mode=DitherMode(config.default_dither_mode),
            observers=observers,
            logger=logger,
        )

    # -- Accessors ----------------------------------------------------------

    def get_state(self) -> PipelineState:
        with self._lock:
            return self._state

    def get_progress(self) -> Progress:
        with self._lock:
            return self._progress

    @property
    def is_processing(self) -> bool:
        return self.get_state() is PipelineState.PROCESSING

    def add_observer(self, observer: PipelineObserver) -> None:
        with self._lock:
            self._observers.append(observer)

    # -- Public interface ---------------------------------------------------

    def generate(
        self, template: GenerationTemplate, settings: GenerationSettings
    ) -> Future[Result[GenerationResult]]:
        """Start one generation run.

        Returns immediately.  The returned future resolves to ``Result.ok``
        with the :class:`GenerationResult` on success, or ``Result.err`` with
        the first error encountered.  It is cancelled if :meth:`cancel` is
        called before the run finishes.
        An unexpected exception in any stage ends the run with a
        ``ProcessingError`` rather than escaping to the caller.
        """
        completion: Future[Result[GenerationResult]] = Future()

        with self._lock:
            if self._state is PipelineState.PROCESSING:
                self._logger.warning("generate() called while already processing; rejected")
                completion.set_result(Result.err(StateError("Pipeline is already processing")))
                return completion

            self._epoch += 1
            epoch = self._epoch
            self._in_flight = _InFlight(epoch=epoch, completion=completion)
            self._set_state(PipelineState.PROCESSING)
            self._progress = Progress(0, TOTAL_STEPS, "Starting")

        self._logger.info("Starting generation #%d", epoch)

        try:
            self._run_stages(epoch, template, settings)
        except Exception as e:
            self._logger.error("Generation #%d raised unexpectedly: %s", epoch, e, exc_info=True)
            self._fail(epoch, ProcessingError(f"Generation failed unexpectedly: {e}"))
        return completion

    def _run_stages(
        self, epoch: int, template: GenerationTemplate, settings: GenerationSettings
    ) -> None:
        """Synchronous stages up to and including dispatch of the service call."""
        # --- Validate inputs and compose prompt ----------------------------
        prompt = self._validate_inputs(template, settings)
        if prompt.is_err:
            self._fail(epoch, prompt.error)
            return

        if not self._advance(epoch, 0, "Initializing"):
            return

        # --- Stage 1: reference image and palette --------------------------
        original = load_reference_image(template.reference_image_path)
        if original.is_err:
            self._fail(epoch, original.error)
            return

        palette = self._palettes.load_palette(template.palette_name)
        if palette.is_err:
            self._fail(epoch, palette.error)
            return

        if not self._advance(epoch, 1, "Loaded reference image and palette"):
            return

        # --- Stage 2: palette conformance ----------------------------------
        conformed = self._engine.conform_to_palette(
            original.value, palette.value, self._dither_mode
        )
        if conformed.is_err:
            self._fail(epoch, self._as_processing_error("Palette conformance", conformed.error))
            return

        if not self._advance(epoch, 2, f"Conformed to palette '{palette.value.name}'"):
            return

        # --- Stage 3: dispatch external generation -------------------------
        credential = self._credentials.load_credential()
        if credential.is_err:
            self._fail(epoch, credential.error)
            return

        with self._lock:
            if not self._is_current(epoch):
                return
            context = self._in_flight
            context.template = template
            context.original_image = original.value
            context.conformed_image = conformed.value

        try:
            service_future = self._service.generate_image(
                prompt=prompt.value,
                reference_image=self._engine.copy_image(conformed.value),
                temperature=settings.temperature,
                aspect_ratio=aspect_ratio_for(template.target_resolution),
                api_key=credential.value,
            )
        except Exception as e:
            self._logger.error("Failed to dispatch image generation: %s", e, exc_info=True)
            self._fail(epoch, ServiceError(f"Failed to start image generation: {e}"))
            return

        with self._lock:
            if self._is_current(epoch):
                context.service_future = service_future

        if not self._advance(epoch, 3, "Generating image"):
            service_future.cancel()
            return

        service_future.add_done_callback(partial(self._on_generation_done, epoch))

    def cancel(self) -> Result[None]:
        """Abort the running invocation and return to ``IDLE``.

        Effective before or during the external call; a response that
        arrives afterwards is discarded.  Fails with ``StateError`` when the
        pipeline is not processing.
        """
        with self._lock:
            if self._state is not PipelineState.PROCESSING:
                return Result.err(
                    StateError(f"Cannot cancel: pipeline is not processing (state={self._state.value})")
                )

            context = self._in_flight
            self._in_flight = None
            self._logger.info("Cancelling generation #%d", context.epoch if context else self._epoch)
            self._set_state(PipelineState.IDLE)

        if context is not None:
            if context.service_future is not None:
                context.service_future.cancel()
            context.completion.cancel()
        return Result.ok(None)

    # -- Completion handling ------------------------------------------------

    def _on_generation_done(self, epoch: int, future: Future) -> None:
        """Service completion handler, bound to one invocation's epoch."""
        try:
            self._finish(epoch, future)
        except Exception as e:
            self._logger.error("Completion of generation #%d raised: %s", epoch, e, exc_info=True)
            self._fail(epoch, ProcessingError(f"Post-processing failed unexpectedly: {e}"))

    def _finish(self, epoch: int, future: Future) -> None:
        with self._lock:
            if not self._is_current(epoch):
                self._logger.debug("Discarding stale generation response for #%d", epoch)
                return
            context = self._in_flight

        if future.cancelled():
            self._fail(epoch, ServiceError("Image generation was cancelled by the service"))
            return

        exc = future.exception()
        if exc is not None:
            self._logger.error("Image generation #%d failed: %s", epoch, exc)
            if isinstance(exc, ServiceError):
                self._fail(epoch, exc)
            else:
                self._fail(epoch, ServiceError(f"Image generation failed: {exc}"))
            return

        generated = future.result()
        if not isinstance(generated, Image) or generated.is_empty():
            self._fail(epoch, ServiceError("Image generation returned no usable image"))
            return

        # --- Stage 4: pixelate ---------------------------------------------
        resolution = context.template.target_resolution
        pixelated = self._engine.pixelate(generated, resolution)
        if pixelated.is_err:
            self._fail(epoch, self._as_processing_error("Pixelation", pixelated.error))
            return

        if not self._advance(epoch, 4, f"Pixelated to {resolution}"):
            return

        # --- Stage 5: upscale and assemble ---------------------------------
        upscaled = self._engine.upscale(pixelated.value, self._display_scale)
        if upscaled.is_err:
            self._fail(epoch, self._as_processing_error("Upscaling", upscaled.error))
            return

        result = GenerationResult(
            original_image=context.original_image,
            conformed_image=context.conformed_image,
            generated_image=generated,
            pixelated_image=pixelated.value,
            upscaled_image=upscaled.value,
            timestamp=datetime.now(),
        )
        self._complete(epoch, result)

    # -- State helpers ------------------------------------------------------

    def _validate_inputs(
        self, template: GenerationTemplate, settings: GenerationSettings
    ) -> Result[str]:
        if template is None:
            return Result.err(ValidationError("No generation template provided"))
        if settings is None:
            return Result.err(ValidationError("No generation settings provided"))

        try:
            template.validate()
            settings.validate()
        except (TypeError, ValueError, AttributeError) as e:
            return Result.err(ValidationError(str(e)))

        return build_prompt(template.base_prompt, settings.detail_prompt)

    @staticmethod
    def _as_processing_error(stage: str, error: PixelforgeError) -> PixelforgeError:
        if isinstance(error, ProcessingError):
            return error
        return ProcessingError(f"{stage} failed: {error}")

    def _is_current(self, epoch: int) -> bool:
        """True while ``epoch`` is the running invocation.  Caller holds the lock."""
        return (
            self._state is PipelineState.PROCESSING
            and self._in_flight is not None
            and self._in_flight.epoch == epoch
        )

    def _advance(self, epoch: int, step: int, message: str) -> bool:
        """Publish progress for ``epoch``; return False if it is no longer current."""
        with self._lock:
            if not self._is_current(epoch):
                self._logger.debug("Generation #%d no longer current at step %d", epoch, step)
                return False
            self._publish_progress(Progress(step, TOTAL_STEPS, message))
            return self._is_current(epoch)

    def _fail(self, epoch: int, error: PixelforgeError) -> None:
        with self._lock:
            if not self._is_current(epoch):
                self._logger.debug("Dropping error for stale generation #%d: %s", epoch, error)
                return
            context = self._in_flight
            self._in_flight = None
            self._logger.error("Generation #%d failed: %s", epoch, error)
            self._set_state(PipelineState.ERROR)
            self._notify("on_failed", error)

        if context.service_future is not None:
            context.service_future.cancel()
        self._resolve(context.completion, Result.err(error))

    def _complete(self, epoch: int, result: GenerationResult) -> None:
        with self._lock:
            if not self._is_current(epoch):
                self._logger.debug("Dropping result for stale generation #%d", epoch)
                return
            completion = self._in_flight.completion
            self._publish_progress(Progress(TOTAL_STEPS, TOTAL_STEPS, "Complete"))
            if not self._is_current(epoch):
                return
            self._in_flight = None
            self._logger.info("Generation #%d completed", epoch)
            self._set_state(PipelineState.COMPLETED)
            self._notify("on_completed", result)

        self._resolve(completion, Result.ok(result))

    def _resolve(self, completion: Future, result: Result) -> None:
        try:
            completion.set_result(result)
        except InvalidStateError:
            self._logger.debug("Completion future already cancelled; result dropped")

    def _set_state(self, state: PipelineState) -> None:
        self._state = state
        self._logger.debug("Pipeline state -> %s", state.value)
        self._notify("on_state_changed", state)

    def _publish_progress(self, progress: Progress) -> None:
        self._progress = progress
        self._logger.info("Progress %s", progress)
        self._notify("on_progress", progress)

    def _notify(self, hook: str, *args) -> None:
        for observer in list(self._observers):
            if not observer.enabled:
                continue
            try:
                getattr(observer, hook)(*args)
            except Exception as e:
                self._logger.error(
                    "Observer %s raised in %s: %s", observer.name, hook, e, exc_info=True
                )
