"""
Built-in functions for arithmetic expressions.

All built-in functions are pure and deterministic. They are plain callables
taking their arguments positionally, the same shape as user-supplied
functions, so a user table can override any of them by name.

Argument-count and domain problems (``sqrt(-1)``, ``log(0)``) surface as
BuiltinError naming the function.
"""

import math
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from .errors import BuiltinError, UndefinedFunctionError

Number = Union[int, float]

# Signature of a callable usable from expressions.
ExpressionFunction = Callable[..., Any]

# Function registry for built-in and injected functions.
FunctionRegistry = Mapping[str, ExpressionFunction]


def _assert_arg_count(args: Sequence[Any], expected: int, function_name: str) -> None:
    """Asserts argument count."""
    if len(args) != expected:
        raise BuiltinError(
            function_name, f"expected {expected} argument(s), got {len(args)}"
        )


def _assert_arg_count_range(
    args: Sequence[Any], min_count: int, max_count: int, function_name: str
) -> None:
    """Asserts argument count range."""
    if len(args) < min_count or len(args) > max_count:
        raise BuiltinError(
            function_name,
            f"expected {min_count}-{max_count} argument(s), got {len(args)}",
        )


def _unary(function_name: str, fn: Callable[[Number], Number]) -> ExpressionFunction:
    """Wraps a one-argument math function with arity checking."""

    def builtin(*args: Number) -> Number:
        _assert_arg_count(args, 1, function_name)
        return fn(args[0])

    builtin.__name__ = function_name
    builtin.__doc__ = f"{function_name}(x) -> number"
    return builtin


def _log(*args: Number) -> float:
    """
    log(x[, base]) -> number

    Natural logarithm, or the logarithm of ``x`` in ``base`` when given.
    """
    _assert_arg_count_range(args, 1, 2, "log")
    if len(args) == 2:
        return math.log(args[0], args[1])
    return math.log(args[0])


# ============================================================
# Registry
# ============================================================

# Registry of all built-in functions.
DEFAULT_FUNCTIONS: FunctionRegistry = MappingProxyType(
    {
        # Trigonometry
        "sin": _unary("sin", math.sin),
        "cos": _unary("cos", math.cos),
        "tan": _unary("tan", math.tan),
        "asin": _unary("asin", math.asin),
        "acos": _unary("acos", math.acos),
        "atan": _unary("atan", math.atan),
        # Rounding
        "floor": _unary("floor", math.floor),
        "ceil": _unary("ceil", math.ceil),
        "abs": _unary("abs", abs),
        # Powers and logarithms
        "sqrt": _unary("sqrt", math.sqrt),
        "log": _log,
        "log10": _unary("log10", math.log10),
        "exp": _unary("exp", math.exp),
        # Angle conversion
        "rad": _unary("rad", math.radians),
        "deg": _unary("deg", math.degrees),
    }
)


def resolve_function(
    name: str,
    functions: Optional[FunctionRegistry] = None,
    position: Optional[int] = None,
    source: Optional[str] = None,
) -> ExpressionFunction:
    """
    Looks a function up in the user table first, then in DEFAULT_FUNCTIONS.

    Raises:
        UndefinedFunctionError: If neither table has the name
    """
    if functions is not None and name in functions:
        return functions[name]
    if name in DEFAULT_FUNCTIONS:
        return DEFAULT_FUNCTIONS[name]
    raise UndefinedFunctionError(name, position, source)


def call_function(
    name: str,
    args: Sequence[Any],
    functions: Optional[FunctionRegistry] = None,
    position: Optional[int] = None,
    source: Optional[str] = None,
) -> Any:
    """
    Calls a function by name with positional arguments.

    Args:
        name: The function name
        args: The evaluated arguments
        functions: Optional user registry, consulted before DEFAULT_FUNCTIONS
        position: Call position, for error reporting
        source: Source expression, for error reporting

    Returns:
        The function result

    Raises:
        UndefinedFunctionError: If the function doesn't exist
        BuiltinError: If the function rejects its arguments
    """
    fn = resolve_function(name, functions, position, source)
    return invoke_function(name, fn, args, position, source)


def invoke_function(
    name: str,
    fn: ExpressionFunction,
    args: Sequence[Any],
    position: Optional[int] = None,
    source: Optional[str] = None,
) -> Any:
    """Invokes a resolved function, converting argument failures to BuiltinError."""
    try:
        return fn(*args)
    except BuiltinError as error:
        if error.position is None:
            error.position = position
            error.expression = source
        raise
    except (TypeError, ValueError, ArithmeticError) as error:
        raise BuiltinError(name, str(error), position, source) from error


def is_builtin_function(name: str) -> bool:
    """Checks if a name is a built-in function."""
    return name in DEFAULT_FUNCTIONS
