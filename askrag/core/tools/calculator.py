"""
Arithmetic evaluation.

Expressions are screened against a character and name whitelist, literals
are promoted to floats (so huge powers overflow instead of running forever)
and the result is evaluated as restricted byte code with only math
functions in scope.

Dependencies: RestrictedPython, math (stdlib)
System role: Executor for the calculate tool
"""

import math
import re

from RestrictedPython import compile_restricted

from askrag.core.exceptions import ToolExecutionError

MAX_EXPRESSION_CHARS = 200

_ALLOWED_CHARS_RE = re.compile(r"^[0-9A-Za-z_+\-*/^%().,\s]+$")
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z_0-9]*")
_ATTRIBUTE_RE = re.compile(r"\.\s*[A-Za-z_]")
_INT_LITERAL_RE = re.compile(r"(?<![\w.])(\d+)(?![\d.eE])")


def _factorial(value: float) -> float:
    if not float(value).is_integer() or value < 0 or value > 170:
        raise ValueError("factorial needs an integer between 0 and 170")
    return float(math.factorial(int(value)))


FUNCTIONS = {
    "sqrt": math.sqrt,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "log": math.log,
    "ln": math.log,
    "log10": math.log10,
    "exp": math.exp,
    "abs": abs,
    "floor": math.floor,
    "ceil": math.ceil,
    "round": round,
    "factorial": _factorial,
    "pi": math.pi,
    "e": math.e,
}


def _screen(expression: str) -> None:
    if not expression:
        raise ToolExecutionError("empty expression", tool="calculate")
    if len(expression) > MAX_EXPRESSION_CHARS:
        raise ToolExecutionError("expression too long", tool="calculate")
    if not _ALLOWED_CHARS_RE.match(expression) or "__" in expression or _ATTRIBUTE_RE.search(expression):
        raise ToolExecutionError("expression contains unsupported characters", tool="calculate")
    unknown = sorted(set(_NAME_RE.findall(expression)) - set(FUNCTIONS))
    if unknown:
        raise ToolExecutionError(f"unknown names: {', '.join(unknown)}", tool="calculate")


def _format(value: float) -> str:
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def calculate(expression: str) -> str:
    """
    Evaluate an arithmetic expression.

    '^' is exponentiation.

    Returns:
        str: '<expression> = <value>'

    Raises:
        ToolExecutionError: For rejected, malformed or undefined expressions
    """
    expression = expression.strip()
    _screen(expression)
    source = _INT_LITERAL_RE.sub(r"\1.0", expression.replace("^", "**"))
    try:
        byte_code = compile_restricted(source, filename="<calculate>", mode="eval")
        value = eval(byte_code, {"__builtins__": {}, **FUNCTIONS})
    except (SyntaxError, TypeError, ValueError, ArithmeticError) as e:
        raise ToolExecutionError(f"cannot evaluate {expression!r}: {e}", tool="calculate") from e
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolExecutionError("expression is not numeric", tool="calculate")
    value = float(value)
    if not math.isfinite(value):
        raise ToolExecutionError("result is undefined", tool="calculate")
    return f"{expression} = {_format(value)}"
