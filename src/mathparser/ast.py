"""
Abstract Syntax Tree (AST) node types for arithmetic expressions.

The AST is produced by the parser and consumed by the evaluator. Nodes are
immutable; ``position`` records where the originating token started and is
ignored by equality and hashing, so structurally identical trees compare
equal regardless of source formatting.
"""

from abc import ABC
from dataclasses import dataclass, field
from typing import Literal, Sequence, Union

# ============================================================
# AST Node Types
# ============================================================


@dataclass(frozen=True)
class AstNodeBase(ABC):
    """Base class for all AST nodes."""

    position: int = field(default=0, compare=False, kw_only=True)
    """Position in source expression (for error reporting)."""


@dataclass(frozen=True)
class ConstantNode(AstNodeBase):
    """
    Numeric literal node.

    The literal keeps its source text (hex, scientific notation) and is only
    converted to a number by the evaluator.
    """

    value: str

    @property
    def type(self) -> Literal["Constant"]:
        return "Constant"


@dataclass(frozen=True)
class VariableNode(AstNodeBase):
    """Variable reference node."""

    name: str

    @property
    def type(self) -> Literal["Variable"]:
        return "Variable"


@dataclass(frozen=True)
class UnaryOperatorNode(AstNodeBase):
    """Unary operator node."""

    operator: str
    operand: "AstNode"

    @property
    def type(self) -> Literal["UnaryOperator"]:
        return "UnaryOperator"


@dataclass(frozen=True)
class BinaryOperatorNode(AstNodeBase):
    """Binary operator node."""

    operator: str
    left: "AstNode"
    right: "AstNode"

    @property
    def type(self) -> Literal["BinaryOperator"]:
        return "BinaryOperator"


@dataclass(frozen=True)
class FunctionCallNode(AstNodeBase):
    """Function call node."""

    name: str
    args: Sequence["AstNode"]

    def __post_init__(self) -> None:
        # Stored as a tuple so the node stays hashable.
        object.__setattr__(self, "args", tuple(self.args))

    @property
    def type(self) -> Literal["FunctionCall"]:
        return "FunctionCall"


# Union type for all AST nodes
AstNode = Union[
    ConstantNode,
    VariableNode,
    UnaryOperatorNode,
    BinaryOperatorNode,
    FunctionCallNode,
]


# ============================================================
# AST Utilities
# ============================================================


def count_ast_nodes(node: AstNode) -> int:
    """Counts the total number of nodes in an AST."""
    if isinstance(node, UnaryOperatorNode):
        return 1 + count_ast_nodes(node.operand)

    if isinstance(node, BinaryOperatorNode):
        return 1 + count_ast_nodes(node.left) + count_ast_nodes(node.right)

    if isinstance(node, FunctionCallNode):
        return 1 + sum(count_ast_nodes(arg) for arg in node.args)

    return 1


def calculate_ast_depth(node: AstNode) -> int:
    """Calculates the maximum depth of an AST."""
    if isinstance(node, UnaryOperatorNode):
        return 1 + calculate_ast_depth(node.operand)

    if isinstance(node, BinaryOperatorNode):
        return 1 + max(calculate_ast_depth(node.left), calculate_ast_depth(node.right))

    if isinstance(node, FunctionCallNode):
        return 1 + max((calculate_ast_depth(arg) for arg in node.args), default=0)

    return 1


def ast_to_string(node: AstNode, indent: int = 0) -> str:
    """Returns a human-readable representation of an AST node for debugging."""
    prefix = "  " * indent

    if isinstance(node, ConstantNode):
        return f"{prefix}Constant: {node.value}"

    if isinstance(node, VariableNode):
        return f"{prefix}Variable: {node.name}"

    if isinstance(node, UnaryOperatorNode):
        return f"{prefix}UnaryOperator: {node.operator}\n{ast_to_string(node.operand, indent + 1)}"

    if isinstance(node, BinaryOperatorNode):
        return (
            f"{prefix}BinaryOperator: {node.operator}\n"
            f"{ast_to_string(node.left, indent + 1)}\n"
            f"{ast_to_string(node.right, indent + 1)}"
        )

    if isinstance(node, FunctionCallNode):
        if not node.args:
            return f"{prefix}FunctionCall: {node.name}"
        args_str = "\n".join(ast_to_string(a, indent + 1) for a in node.args)
        return f"{prefix}FunctionCall: {node.name}\n{args_str}"

    return f"{prefix}Unknown: {node}"


def ast_to_expression(node: AstNode) -> str:
    """
    Serializes an AST back to expression text with every operator application
    parenthesized.

    Parsing the result with the same operator configuration yields a tree
    equal to ``node``, whatever the precedence tables say.
    """
    if isinstance(node, ConstantNode):
        return node.value

    if isinstance(node, VariableNode):
        return node.name

    if isinstance(node, UnaryOperatorNode):
        return f"({node.operator} {ast_to_expression(node.operand)})"

    if isinstance(node, BinaryOperatorNode):
        return (
            f"({ast_to_expression(node.left)} {node.operator} "
            f"{ast_to_expression(node.right)})"
        )

    if isinstance(node, FunctionCallNode):
        args = ", ".join(ast_to_expression(arg) for arg in node.args)
        return f"{node.name}({args})"

    raise TypeError(f"Not an AST node: {node!r}")
