import pytest

from arcstory.core.values import (
    binary_op,
    coerce_literal,
    is_truthy,
    is_zero,
    to_display,
    unary_op,
    values_equal,
)
from arcstory.script.errors import ExecutionError


def test_integer_arithmetic_stays_integer() -> None:
    assert binary_op("+", 2, 2) == 4
    assert isinstance(binary_op("*", 3, 4), int)
    assert binary_op("/", 4, 2) == 2
    assert isinstance(binary_op("/", 4, 2), int)


def test_mixed_arithmetic_widens_to_float() -> None:
    assert binary_op("+", 1, 2.5) == 3.5
    assert binary_op("/", 7, 2) == 3.5


def test_plus_with_a_string_concatenates() -> None:
    assert binary_op("+", "a", 1) == "a1"
    assert binary_op("+", 2, " apples") == "2 apples"
    assert binary_op("+", "is ", True) == "is true"


def test_division_by_zero_is_an_execution_error() -> None:
    with pytest.raises(ExecutionError):
        binary_op("/", 1, 0)
    with pytest.raises(ExecutionError):
        binary_op("%", 1, 0)


def test_float_overflow_is_an_execution_error() -> None:
    huge = 10**400
    with pytest.raises(ExecutionError):
        binary_op("/", huge, 3)
    with pytest.raises(ExecutionError):
        binary_op("*", huge, 1.5)
    with pytest.raises(ExecutionError):
        binary_op("%", huge, 0.5)
    assert binary_op("*", huge, 2) == 2 * huge


def test_modulo_keeps_sign_of_dividend() -> None:
    assert binary_op("%", 10, 4) == 2
    assert binary_op("%", -7, 3) == -1


def test_string_arithmetic_other_than_plus_fails() -> None:
    with pytest.raises(ExecutionError):
        binary_op("-", "a", 1)


def test_null_reads_as_zero_in_arithmetic() -> None:
    assert binary_op("+", None, 3) == 3


def test_equality_widens_numbers_but_not_strings() -> None:
    assert values_equal(1, 1.0)
    assert values_equal(True, 1)
    assert not values_equal("1", 1)
    assert values_equal(None, None)
    assert not values_equal(None, 0)


def test_ordering_strings_and_numbers() -> None:
    assert binary_op("<", "a", "b") is True
    assert binary_op(">=", 3, 2.5) is True
    with pytest.raises(ExecutionError):
        binary_op("<", "a", 1)


def test_truthiness() -> None:
    assert not is_truthy(None)
    assert not is_truthy(0)
    assert not is_truthy("")
    assert is_truthy("false")
    assert is_truthy(0.1)


def test_unary_operators() -> None:
    assert unary_op("-", 3) == -3
    assert unary_op("!", 0) is True
    assert unary_op("!", "text") is False


def test_display_conversion() -> None:
    assert to_display(4) == "4"
    assert to_display(4.0) == "4"
    assert to_display(2.5) == "2.5"
    assert to_display(True) == "true"
    assert to_display(None) == ""
    assert to_display("hi") == "hi"


def test_zero_divisor_detection() -> None:
    assert is_zero(0)
    assert is_zero(0.0)
    assert is_zero(None)
    assert not is_zero("0")


def test_coerce_literal_rejects_containers() -> None:
    assert coerce_literal(3, "x") == 3
    with pytest.raises(ValueError):
        coerce_literal([1], "x")
