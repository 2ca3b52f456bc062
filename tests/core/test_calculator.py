"""
Test suite for the calculator.

System role: Verification of the calculate tool executor
"""

import pytest

from askrag.core.exceptions import ToolExecutionError
from askrag.core.tools.calculator import calculate


class TestCalculate:
    """Test suite for calculate."""

    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("3*2+(2^3)", "3*2+(2^3) = 14"),
            ("10/4", "10/4 = 2.5"),
            ("sqrt(16)", "sqrt(16) = 4"),
            ("2*pi", "2*pi = 6.283185307179586"),
            ("7 % 3", "7 % 3 = 1"),
            ("factorial(5)", "factorial(5) = 120"),
        ],
    )
    def test_should_evaluate(self, expression: str, expected: str) -> None:
        assert calculate(expression) == expected

    @pytest.mark.parametrize(
        "expression",
        ["", "__import__('os')", "x + 1", "1/0", "().__class__", "open('f')", "9^9^9", "sqrt(-1)"],
    )
    def test_should_reject(self, expression: str) -> None:
        with pytest.raises(ToolExecutionError):
            calculate(expression)
