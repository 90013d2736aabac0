"""
Error types for the expression engine.

All expression errors extend ExpressionError for consistent handling.
Every error carries a ``kind`` naming its stage bucket (lexical, syntax,
evaluation or limit) so a host can route failures without string matching.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

# Number of characters shown on each side of the failing position.
CONTEXT_WINDOW = 20


def format_pointer(message: str, expression: str, position: int) -> str:
    """
    Renders a message with a context window and a caret under the position.

    The window is clipped to CONTEXT_WINDOW characters on each side so long
    expressions stay readable.
    """
    position = max(0, min(position, len(expression)))
    start = max(0, position - CONTEXT_WINDOW)
    end = min(len(expression), position + CONTEXT_WINDOW + 1)
    prefix = "..." if start > 0 else ""
    suffix = "..." if end < len(expression) else ""
    window = f"{prefix}{expression[start:end]}{suffix}"
    pointer = " " * (len(prefix) + position - start) + "^"
    return f"{message}\n  {window}\n  {pointer}"


class ExpressionError(Exception):
    """
    Base error class for all expression-related errors.
    """

    kind = "expression"

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.expression = expression

    def format_with_context(self) -> str:
        """
        Returns a formatted error message with position context.
        """
        if self.expression is None or self.position is None:
            return self.message

        return format_pointer(self.message, self.expression, self.position)


@dataclass(frozen=True)
class LexicalErrorDetail:
    """A single problem found while tokenizing."""

    message: str
    position: int


class TokenizerError(ExpressionError):
    """
    Error thrown during tokenization (lexical analysis).

    The tokenizer reports every problem it finds in one pass, so this error
    aggregates one or more details. ``position`` is that of the first one.
    """

    kind = "lexical"

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
        errors: Optional[Sequence[LexicalErrorDetail]] = None,
    ):
        super().__init__(message, position, expression)
        if errors is None:
            errors = [LexicalErrorDetail(message, position or 0)]
        self.errors: List[LexicalErrorDetail] = list(errors)

    @classmethod
    def from_details(
        cls, details: Sequence[LexicalErrorDetail], expression: str
    ) -> "TokenizerError":
        """Builds one aggregate error from all details collected in a pass."""
        if len(details) == 1:
            message = details[0].message
        else:
            message = f"{len(details)} lexical errors"
        return cls(message, details[0].position, expression, details)

    def format_with_context(self) -> str:
        if self.expression is None:
            return self.message

        return "\n".join(
            format_pointer(detail.message, self.expression, detail.position)
            for detail in self.errors
        )

    def __str__(self) -> str:
        if len(self.errors) <= 1:
            return self.message
        listing = "; ".join(
            f"{d.message} at position {d.position}" for d in self.errors
        )
        return f"{self.message}: {listing}"


class ParseError(ExpressionError):
    """
    Error thrown during parsing (syntax analysis).
    """

    kind = "syntax"


class EvaluationError(ExpressionError):
    """
    Error thrown during evaluation (runtime error).
    """

    kind = "evaluation"


class UndefinedVariableError(EvaluationError):
    """Raised when a variable has no binding."""

    def __init__(
        self,
        name: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f"Variable not found: {name}", position, expression)
        self.name = name


class UndefinedFunctionError(EvaluationError):
    """Raised when a function is in neither the user nor the default table."""

    def __init__(
        self,
        name: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f"Unknown function: {name}", position, expression)
        self.name = name


class UnknownOperatorError(EvaluationError):
    """
    Raised when the parser accepted an operator the evaluator has no
    function for.
    """

    def __init__(
        self,
        operator: str,
        arity: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f"Unknown {arity} operator: {operator}", position, expression)
        self.operator = operator
        self.arity = arity


class InvalidLiteralError(EvaluationError):
    """Raised when a constant's text does not parse as a number."""

    def __init__(
        self,
        text: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f"Invalid numeric literal: {text}", position, expression)
        self.text = text


class BuiltinError(EvaluationError):
    """
    Error thrown when a function call fails.
    """

    def __init__(
        self,
        function_name: str,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        full_message = f"{function_name}: {message}"
        super().__init__(full_message, position, expression)
        self.function_name = function_name


class LimitExceededError(ExpressionError):
    """
    Error thrown when expression limits are exceeded.
    """

    kind = "limit"

    def __init__(
        self,
        limit_name: str,
        limit: int,
        actual: int,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        message = f"Limit exceeded: {limit_name} (limit: {limit}, actual: {actual})"
        super().__init__(message, position, expression)
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual


class NestingTooDeepError(LimitExceededError):
    """Raised by the parser instead of exhausting the Python call stack."""

    def __init__(
        self,
        limit: int,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__("max_nesting_depth", limit, limit + 1, position, expression)
