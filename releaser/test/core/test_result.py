"""Tests for releaser.core.result module."""

import pytest

from releaser.core.result import Err, Ok, Result


def _half(x: int) -> Result[int, str]:
    return Ok(x // 2) if x % 2 == 0 else Err("odd")


class TestOk:
    def test_create_ok(self) -> None:
        result = Ok(42)
        assert result.value == 42

    def test_equality(self) -> None:
        assert Ok(42) == Ok(42)
        assert Ok(42) != Err(42)

    def test_repr(self) -> None:
        assert repr(Ok("1.0.7")) == "Ok('1.0.7')"

    def test_pattern_matching(self) -> None:
        match _half(84):
            case Ok(value):
                assert value == 42
            case Err(_):
                pytest.fail("expected Ok")


class TestErr:
    def test_create_err(self) -> None:
        result = Err("boom")
        assert result.error == "boom"

    def test_repr(self) -> None:
        assert repr(Err("boom")) == "Err('boom')"

    def test_pattern_matching(self) -> None:
        match _half(3):
            case Ok(_):
                pytest.fail("expected Err")
            case Err(error):
                assert error == "odd"


def test_isinstance_narrowing() -> None:
    result = _half(3)
    assert isinstance(result, Err)
    assert not isinstance(result, Ok)


def test_frozen() -> None:
    result = Ok(1)
    with pytest.raises(AttributeError):
        result.value = 2  # type: ignore[misc]
