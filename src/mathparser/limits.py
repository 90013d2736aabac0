"""
Resource limits for expression parsing and evaluation.

These limits protect against resource exhaustion attacks and
overly complex expressions.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import LimitExceededError


@dataclass(frozen=True)
class ExpressionLimits:
    """Expression limits configuration."""

    # Maximum expression string length in characters
    max_expression_length: int = 4096

    # Maximum nesting of parentheses, unary chains and operator recursion
    max_nesting_depth: int = 64

    # Maximum number of AST nodes
    max_ast_nodes: int = 512

    # Maximum function call arguments
    max_function_args: int = 32


# Default expression limits.
#
# Deep enough for any hand-written formula while keeping the recursive
# parser and evaluator well inside the interpreter's recursion limit.
DEFAULT_EXPRESSION_LIMITS = ExpressionLimits()


def check_expression_length(
    expression: str, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates that expression length is within limits."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if len(expression) > limits.max_expression_length:
        raise LimitExceededError(
            "max_expression_length",
            limits.max_expression_length,
            len(expression),
        )


def check_ast_node_count(
    count: int, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates AST node count after parsing."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if count > limits.max_ast_nodes:
        raise LimitExceededError("max_ast_nodes", limits.max_ast_nodes, count)


def check_function_arg_count(
    count: int,
    limits: Optional[ExpressionLimits] = None,
    position: Optional[int] = None,
    expression: Optional[str] = None,
) -> None:
    """Validates function argument count."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if count > limits.max_function_args:
        raise LimitExceededError(
            "max_function_args",
            limits.max_function_args,
            count,
            position,
            expression,
        )
