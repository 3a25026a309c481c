"""Unit tests for the Result container."""

import pytest

from pixelforge.core.errors import NotFoundError, ProcessingError, ValidationError
from pixelforge.core.result import Result


class TestResult:
    """Tests for Result construction and accessors."""

    def test_ok_holds_value(self):
        result = Result.ok(42)

        assert result.is_ok
        assert not result.is_err
        assert result.value == 42
        assert result.error is None

    def test_err_holds_error(self):
        error = NotFoundError("missing")
        result = Result.err(error)

        assert result.is_err
        assert result.error is error

    def test_value_on_error_raises(self):
        """Accessing .value on an error result is a programming error."""
        with pytest.raises(ValueError, match="missing"):
            Result.err(NotFoundError("missing")).value

    def test_unwrap_raises_carried_error(self):
        with pytest.raises(ValidationError, match="bad input"):
            Result.err(ValidationError("bad input")).unwrap()

    def test_err_requires_error(self):
        with pytest.raises(TypeError):
            Result.err(None)

    def test_ok_none_is_success(self):
        assert Result.ok(None).is_ok

    def test_value_or(self):
        assert Result.ok(1).value_or(5) == 1
        assert Result.err(ProcessingError("x")).value_or(5) == 5


class TestResultChaining:
    """Tests for map / and_then."""

    def test_map_transforms_value(self):
        assert Result.ok(2).map(lambda v: v * 3).value == 6

    def test_map_passes_error_through(self):
        error = ProcessingError("boom")
        assert Result.err(error).map(lambda v: v * 3).error is error

    def test_and_then_chains_results(self):
        result = Result.ok(2).and_then(lambda v: Result.err(NotFoundError(f"no {v}")))
        assert isinstance(result.error, NotFoundError)
        assert "no 2" in str(result.error)

    def test_repr(self):
        assert repr(Result.ok(1)) == "Result.ok(1)"
        assert "NotFoundError" in repr(Result.err(NotFoundError("x")))
