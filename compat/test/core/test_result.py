"""Tests for compat.core.result module."""

from __future__ import annotations

import pytest

from compat.core.result import Err, Ok, Result


def _half(n: int) -> Result[int, str]:
    if n % 2:
        return Err(f"{n} is odd")
    return Ok(n // 2)


class TestOk:
    def test_value_and_equality(self) -> None:
        assert Ok(42).value == 42
        assert Ok(42) == Ok(42)
        assert Ok(42) != Err(42)

    def test_repr(self) -> None:
        assert repr(Ok("x")) == "Ok('x')"

    def test_frozen(self) -> None:
        result = Ok(1)
        with pytest.raises(AttributeError):
            result.value = 2  # type: ignore[misc]


class TestErr:
    def test_error_and_repr(self) -> None:
        result: Err[str] = Err("boom")
        assert result.error == "boom"
        assert repr(result) == "Err('boom')"


def test_isinstance_narrowing() -> None:
    result = _half(4)
    assert isinstance(result, Ok)
    assert result.value == 2
    assert isinstance(_half(3), Err)


def test_pattern_matching() -> None:
    match _half(3):
        case Ok(value):
            pytest.fail(f"unexpected value {value}")
        case Err(error):
            assert error == "3 is odd"
