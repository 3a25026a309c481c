"""Error taxonomy for the Pixelforge generation pipeline.

Every fallible operation in :mod:`pixelforge.core` reports failure through a
:class:`~pixelforge.core.result.Result` whose error value is one of the
exception classes below.  They are real ``Exception`` subclasses so callers
that prefer exceptions can simply ``raise`` them (see ``Result.unwrap``).

Error Kinds
-----------
ValidationError
    Bad template, settings or prompt input.
NotFoundError
    A named palette or the service credential could not be found.
ImageIOError
    The reference image could not be read or decoded.
ProcessingError
    Invalid image or dimensions during conform / pixelate / upscale.
ServiceError
    The external image-generation service failed or returned garbage.
StateError
    The operation is illegal for the pipeline's current state.
"""


class PixelforgeError(Exception):
    """Base class for all pipeline errors.

    The message is intended to be shown directly to the user.
    """

    kind = "error"

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(PixelforgeError):
    """User-friendly validation error for templates, settings and prompts."""

    kind = "validation"


class NotFoundError(PixelforgeError):
    kind = "not_found"


class ImageIOError(PixelforgeError):
    """Reference image could not be loaded."""

    kind = "io"


class ProcessingError(PixelforgeError):
    kind = "processing"


class ServiceError(PixelforgeError):
    """External image generation failed or returned a malformed response."""

    kind = "service"


class StateError(PixelforgeError):
    """Operation not allowed in the pipeline's current state."""

    kind = "state"
