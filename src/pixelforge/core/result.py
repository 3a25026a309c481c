"""Explicit success/error container.

``Result`` keeps failures out of the exception channel across component
boundaries: every fallible operation returns either ``Result.ok(value)`` or
``Result.err(error)`` where ``error`` is a
:class:`~pixelforge.core.errors.PixelforgeError`.

Usage
-----
::

    nearest = palette.find_nearest(color)
    if nearest.is_err:
        logger.error("Lookup failed: %s", nearest.error)
        return nearest

    color = nearest.value
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import PixelforgeError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or an error, never both.

    Attributes:
        _value: The success value (``None`` on failure).
        _error: The failure (``None`` on success).
    """

    _value: T | None = None
    _error: PixelforgeError | None = None

    @classmethod
    def ok(cls, value: T) -> Result[T]:
        return cls(_value=value)

    @classmethod
    def err(cls, error: PixelforgeError) -> Result[T]:
        if error is None:
            raise TypeError("Result.err() requires an error instance")
        return cls(_error=error)

    @property
    def is_ok(self) -> bool:
        return self._error is None

    @property
    def is_err(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T:
        """Return the success value.

        Raises:
            ValueError: If this result holds an error.  Check ``is_ok``
                first, or use :meth:`unwrap` to re-raise the carried error.
        """
        if self._error is not None:
            raise ValueError(f"Result holds an error: {self._error}")
        return self._value  # type: ignore[return-value]

    @property
    def error(self) -> PixelforgeError | None:
        return self._error

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def value_or(self, default: T) -> T:
        return default if self._error is not None else self._value  # type: ignore[return-value]

    def map(self, fn: Callable[[T], U]) -> Result[U]:
        if self._error is not None:
            return Result.err(self._error)
        return Result.ok(fn(self._value))  # type: ignore[arg-type]

    def and_then(self, fn: Callable[[T], Result[U]]) -> Result[U]:
        if self._error is not None:
            return Result.err(self._error)
        return fn(self._value)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        if self._error is not None:
            return f"Result.err({type(self._error).__name__}({str(self._error)!r}))"
        return f"Result.ok({self._value!r})"
