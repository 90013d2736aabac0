"""
Expression evaluator.

Walks an AST and computes its numeric value against variable bindings,
operator-function tables and a function table.

Semantics:
- Evaluation is eager and strictly left-to-right: a binary operator's left
  operand, then its right, then the operator; function arguments in order.
- Variables are looked up by presence, so a variable bound to 0 is defined.
- Function names resolve against the user table first, then the built-ins.
- The first failure aborts the walk; later subtrees are never evaluated.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, cast

from .ast import (
    AstNode,
    BinaryOperatorNode,
    ConstantNode,
    FunctionCallNode,
    UnaryOperatorNode,
    VariableNode,
)
from .builtins import FunctionRegistry, invoke_function, resolve_function
from .config import OperatorFunctions
from .errors import (
    EvaluationError,
    ExpressionError,
    InvalidLiteralError,
    UndefinedVariableError,
    UnknownOperatorError,
)

logger = logging.getLogger(__name__)

_EMPTY_BINDINGS: Mapping[str, Any] = {}


def parse_number(text: str) -> Any:
    """
    Converts literal text accepted by the tokenizer into a number.

    Hexadecimal and plain decimal integers become ``int``; literals with a
    fractional part or exponent become ``float``.

    Raises:
        ValueError: If the text is not a numeric literal
    """
    if text[:2] in ("0x", "0X"):
        return int(text, 16)
    if "." in text or "e" in text or "E" in text:
        return float(text)
    return int(text, 10)


@dataclass
class EvaluationResult:
    """Result of a non-raising evaluation."""

    value: Any
    """The evaluated value."""

    success: bool
    """Whether evaluation succeeded."""

    error: Optional[str] = None
    """Error message if evaluation failed."""

    exception: Optional[ExpressionError] = None
    """The error itself, for callers that need its kind and position."""


class Evaluator:
    """
    Evaluates an AST node and returns the result.

    Reusable through ``reset``. The instance only reads the tables it is
    given; callers that mutate a shared variable mapping during an
    evaluation must synchronize themselves.
    """

    def __init__(
        self,
        ast: Optional[AstNode] = None,
        variables: Optional[Mapping[str, Any]] = None,
        operator_functions: Optional[OperatorFunctions] = None,
        functions: Optional[FunctionRegistry] = None,
        source: Optional[str] = None,
    ):
        self._ast: Optional[AstNode] = None
        self._variables: Mapping[str, Any] = _EMPTY_BINDINGS
        self._operator_functions = OperatorFunctions.from_value(None)
        self._functions: Optional[FunctionRegistry] = None
        self._source: Optional[str] = None
        self.reset(ast, variables, operator_functions, functions, source)

    def reset(
        self,
        ast: Optional[AstNode],
        variables: Optional[Mapping[str, Any]] = None,
        operator_functions: Optional[OperatorFunctions] = None,
        functions: Optional[FunctionRegistry] = None,
        source: Optional[str] = None,
    ) -> None:
        """
        Loads a new AST and configuration.

        Omitted tables fall back to no variables, the default operator
        functions and the built-in functions only.
        """
        self._ast = ast
        self._variables = variables if variables is not None else _EMPTY_BINDINGS
        self._operator_functions = OperatorFunctions.from_value(operator_functions)
        self._functions = functions
        self._source = source

    def evaluate(self, node: Optional[AstNode] = None) -> Any:
        """Evaluates ``node`` (the loaded AST by default) and returns the value."""
        if node is None:
            if self._ast is None:
                raise ValueError("No expression to evaluate; call reset() first")
            node = self._ast
        return self._evaluate_node(node)

    def _evaluate_node(self, node: AstNode) -> Any:
        node_type = node.type

        if node_type == "Constant":
            return self._evaluate_constant(cast(ConstantNode, node))

        if node_type == "Variable":
            return self._evaluate_variable(cast(VariableNode, node))

        if node_type == "UnaryOperator":
            return self._evaluate_unary_operator(cast(UnaryOperatorNode, node))

        if node_type == "BinaryOperator":
            return self._evaluate_binary_operator(cast(BinaryOperatorNode, node))

        if node_type == "FunctionCall":
            return self._evaluate_function_call(cast(FunctionCallNode, node))

        raise EvaluationError(
            f"Invalid node type: {node_type}", node.position, self._source
        )

    def _evaluate_constant(self, node: ConstantNode) -> Any:
        try:
            return parse_number(node.value)
        except ValueError as error:
            raise InvalidLiteralError(node.value, node.position, self._source) from error

    def _evaluate_variable(self, node: VariableNode) -> Any:
        # Presence, not truthiness: 0 is a perfectly good binding.
        if node.name not in self._variables:
            raise UndefinedVariableError(node.name, node.position, self._source)
        return self._variables[node.name]

    def _evaluate_unary_operator(self, node: UnaryOperatorNode) -> Any:
        operator_function = self._operator_functions.unary.get(node.operator)
        if operator_function is None:
            raise UnknownOperatorError(node.operator, "unary", node.position, self._source)

        operand = self._evaluate_node(node.operand)
        return self._apply(node, operator_function, operand)

    def _evaluate_binary_operator(self, node: BinaryOperatorNode) -> Any:
        operator_function = self._operator_functions.binary.get(node.operator)
        if operator_function is None:
            raise UnknownOperatorError(node.operator, "binary", node.position, self._source)

        left = self._evaluate_node(node.left)
        right = self._evaluate_node(node.right)
        return self._apply(node, operator_function, left, right)

    def _apply(self, node: AstNode, operator_function: Any, *operands: Any) -> Any:
        try:
            return operator_function(*operands)
        except (TypeError, ValueError, ArithmeticError) as error:
            raise EvaluationError(
                f"Operator '{node.operator}' failed: {error}",
                node.position,
                self._source,
            ) from error

    def _evaluate_function_call(self, node: FunctionCallNode) -> Any:
        # Resolve first so an unknown name fails before its arguments run.
        fn = resolve_function(node.name, self._functions, node.position, self._source)
        args = [self._evaluate_node(arg) for arg in node.args]
        return invoke_function(node.name, fn, args, node.position, self._source)


def evaluate(
    ast: AstNode,
    variables: Optional[Mapping[str, Any]] = None,
    operator_functions: Optional[OperatorFunctions] = None,
    functions: Optional[FunctionRegistry] = None,
    source: Optional[str] = None,
) -> Any:
    """
    Evaluates an AST and returns its value.

    Args:
        ast: The AST to evaluate
        variables: Variable bindings
        operator_functions: Operator implementations (defaults when omitted)
        functions: User functions, consulted before the built-ins
        source: Source expression for error reporting

    Raises:
        EvaluationError: If evaluation fails
    """
    evaluator = Evaluator(ast, variables, operator_functions, functions, source)
    value = evaluator.evaluate()
    logger.debug("expression_evaluated", extra={"root": ast.type})
    return value


def try_evaluate(
    ast: AstNode,
    variables: Optional[Mapping[str, Any]] = None,
    operator_functions: Optional[OperatorFunctions] = None,
    functions: Optional[FunctionRegistry] = None,
    source: Optional[str] = None,
) -> EvaluationResult:
    """
    Evaluates an AST, reporting failure in the result instead of raising.

    Returns:
        The evaluation result with value and success status
    """
    try:
        value = evaluate(ast, variables, operator_functions, functions, source)
        return EvaluationResult(value=value, success=True)
    except ExpressionError as error:
        return EvaluationResult(
            value=None, success=False, error=str(error), exception=error
        )
