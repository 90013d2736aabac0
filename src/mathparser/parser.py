"""
Parser for arithmetic expressions.

Parses a list of tokens into an Abstract Syntax Tree (AST) by precedence
climbing over runtime-configurable precedence tables:

    expression      := binary(0)
    binary(minPrec) := unary { binaryOp unary }*
    unary           := unaryOp binary(unaryPrec) | primary
    primary         := constant | variable | functionCall | "(" expression ")"
    functionCall    := variable "(" [expression {"," expression}*] ")"

A binary operator continues ``binary(minPrec)`` when its precedence exceeds
``minPrec`` or when it is right-associative; its right operand is parsed as
``binary(precedence)``. With the default tables this gives ``2^3^2 == 2^9``
and ``-2^2 == -(2^2)`` while ``-2*3 == (-2)*3``.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Union

from .ast import (
    AstNode,
    BinaryOperatorNode,
    ConstantNode,
    FunctionCallNode,
    UnaryOperatorNode,
    VariableNode,
)
from .config import PrecedenceLevels
from .errors import NestingTooDeepError, ParseError
from .limits import (
    DEFAULT_EXPRESSION_LIMITS,
    ExpressionLimits,
    check_ast_node_count,
    check_function_arg_count,
)
from .tokenizer import Token, TokenType, tokenize

logger = logging.getLogger(__name__)

# Error Messages
ERROR_EXPECTED_EOF = "Expected EOF, got '{}'"
ERROR_UNEXPECTED_TOKEN = (
    "Unexpected token: '{}' in <primary>, expected constant, variable or function call"
)
ERROR_EXPECTED_EXPRESSION = "Expected expression, got EOF"
ERROR_EXPECTED_CLOSING_PARENTHESIS = "Expected ')', got EOF"
ERROR_UNCLOSED_PARENTHESIS = "Expected ')', got '{}'"
ERROR_EXPECTED_COMMA_OR_CLOSING_PARENTHESIS = "Expected ',' or ')', got '{}'"


class Parser:
    """
    Parser for token lists.

    Like the tokenizer, a parser instance is reusable through ``reset`` and
    holds cursor state, so it must not be shared between threads without
    external locking.
    """

    def __init__(
        self,
        tokens: Optional[Sequence[Token]] = None,
        precedence_levels: Optional[PrecedenceLevels] = None,
        source: Optional[str] = None,
        limits: Optional[ExpressionLimits] = None,
    ):
        self._limits = limits or DEFAULT_EXPRESSION_LIMITS
        self._tokens: Optional[Sequence[Token]] = None
        self._precedence = PrecedenceLevels.from_value(precedence_levels)
        self._source = source
        self._current = 0
        self._depth = 0
        self._node_count = 0
        if tokens is not None:
            self.reset(tokens, precedence_levels, source)

    @property
    def precedence_levels(self) -> PrecedenceLevels:
        return self._precedence

    def reset(
        self,
        tokens: Sequence[Token],
        precedence_levels: Optional[PrecedenceLevels] = None,
        source: Optional[str] = None,
    ) -> None:
        """
        Resets the parser to parse ``tokens`` from the beginning.

        ``precedence_levels`` replaces the tables (None restores the
        defaults); ``source`` is only used to give errors a caret pointer.
        """
        if tokens is None:
            raise ValueError("No tokens given")
        self._tokens = tokens
        self._precedence = PrecedenceLevels.from_value(precedence_levels)
        self._source = source
        self._current = 0
        self._depth = 0
        self._node_count = 0

    def parse(self, check_trailing: bool = True) -> AstNode:
        """
        Parses the token list into an AST.

        With ``check_trailing`` disabled, parsing stops after the first
        complete expression and leaves the cursor on the next token.
        """
        if self._tokens is None:
            raise ValueError("No tokens to parse; call reset() first")

        ast = self._parse_expression()

        if check_trailing and not self._is_at_end():
            token = self._peek()
            raise self._error(ERROR_EXPECTED_EOF.format(token.value), token)

        logger.debug(
            "expression_parsed",
            extra={"token_count": len(self._tokens), "node_count": self._node_count},
        )
        return ast

    @property
    def position(self) -> int:
        """Index of the next unconsumed token."""
        return self._current

    # ============================================================
    # Token Helpers
    # ============================================================

    def _is_at_end(self) -> bool:
        return self._current >= len(self._tokens)

    def _peek(self, offset: int = 0) -> Optional[Token]:
        index = self._current + offset
        if 0 <= index < len(self._tokens):
            return self._tokens[index]
        return None

    def _previous(self) -> Optional[Token]:
        return self._peek(-1)

    def _advance(self) -> Token:
        token = self._tokens[self._current]
        self._current += 1
        return token

    def _is_paren(self, token: Optional[Token], value: str) -> bool:
        return (
            token is not None
            and token.type == TokenType.PARENTHESES
            and token.value == value
        )

    def _binary_precedence(self, token: Optional[Token]) -> Optional[int]:
        if token is None or token.type != TokenType.OPERATOR:
            return None
        return self._precedence.binary_precedence(token.value)

    def _unary_precedence(self, token: Optional[Token]) -> Optional[int]:
        if token is None or token.type != TokenType.OPERATOR:
            return None
        return self._precedence.unary_precedence(token.value)

    def _is_function_call(self) -> bool:
        token = self._peek()
        return (
            token is not None
            and token.type == TokenType.VARIABLE
            and self._is_paren(self._peek(1), "(")
        )

    # ============================================================
    # Errors & Limits
    # ============================================================

    def _end_position(self) -> int:
        if self._source is not None:
            return len(self._source)
        if self._tokens:
            last = self._tokens[-1]
            return last.position + len(last.value)
        return 0

    def _error(self, message: str, token: Optional[Token] = None) -> ParseError:
        position = token.position if token is not None else self._end_position()
        return ParseError(message, position, self._source)

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > self._limits.max_nesting_depth:
            token = self._peek()
            position = token.position if token is not None else self._end_position()
            raise NestingTooDeepError(
                self._limits.max_nesting_depth, position, self._source
            )

    def _leave(self) -> None:
        self._depth -= 1

    def _count_node(self) -> None:
        self._node_count += 1
        check_ast_node_count(self._node_count, self._limits)

    # ============================================================
    # Expression Parsing
    # ============================================================

    def _parse_expression(self) -> AstNode:
        return self._parse_binary(0)

    def _parse_binary(self, min_precedence: int) -> AstNode:
        """Parses ``unary { binaryOp unary }*`` above ``min_precedence``."""
        self._enter()
        try:
            node = self._parse_unary()

            while True:
                token = self._peek()
                precedence = self._binary_precedence(token)
                if precedence is None:
                    break
                if precedence <= min_precedence and not self._precedence.is_right_associative(
                    token.value
                ):
                    break

                self._advance()  # consume the operator
                if self._is_at_end():
                    raise self._error(ERROR_EXPECTED_EXPRESSION)

                right = self._parse_binary(precedence)
                self._count_node()
                node = BinaryOperatorNode(
                    operator=token.value,
                    left=node,
                    right=right,
                    position=token.position,
                )

            return node
        finally:
            self._leave()

    def _parse_unary(self) -> AstNode:
        """Parses ``unaryOp binary(unaryPrec) | primary``."""
        token = self._peek()
        precedence = self._unary_precedence(token)
        if precedence is None:
            return self._parse_primary()

        self._advance()  # consume the operator
        if self._is_at_end():
            raise self._error(ERROR_EXPECTED_EXPRESSION)

        operand = self._parse_binary(precedence)
        self._count_node()
        return UnaryOperatorNode(
            operator=token.value, operand=operand, position=token.position
        )

    def _parse_primary(self) -> AstNode:
        """Parses constants, variables, function calls and parenthesized groups."""
        token = self._peek()
        if token is None:
            raise self._error(ERROR_EXPECTED_EXPRESSION)

        if self._is_paren(token, "("):
            self._advance()
            if self._is_at_end():
                raise self._error(ERROR_EXPECTED_EXPRESSION)
            expression = self._parse_expression()
            closing = self._peek()
            if closing is None:
                raise self._error(ERROR_EXPECTED_CLOSING_PARENTHESIS)
            if not self._is_paren(closing, ")"):
                raise self._error(ERROR_UNCLOSED_PARENTHESIS.format(closing.value), closing)
            self._advance()
            return expression

        if token.type == TokenType.VARIABLE:
            if self._is_function_call():
                return self._parse_function_call()
            self._advance()
            self._count_node()
            return VariableNode(name=token.value, position=token.position)

        if token.type == TokenType.CONSTANT:
            self._advance()
            self._count_node()
            return ConstantNode(value=token.value, position=token.position)

        raise self._error(ERROR_UNEXPECTED_TOKEN.format(token.value), token)

    def _parse_function_call(self) -> AstNode:
        """Parses ``name "(" [expression {"," expression}*] ")"``."""
        name_token = self._advance()
        self._advance()  # consume "("
        args: List[AstNode] = []

        if self._is_paren(self._peek(), ")"):
            self._advance()
            self._count_node()
            return FunctionCallNode(name=name_token.value, args=(), position=name_token.position)

        while True:
            if self._is_at_end():
                previous = self._previous()
                if previous is not None and previous.type == TokenType.COMMA:
                    raise self._error(ERROR_EXPECTED_EXPRESSION)
                raise self._error(ERROR_EXPECTED_CLOSING_PARENTHESIS)

            args.append(self._parse_expression())
            check_function_arg_count(
                len(args), self._limits, name_token.position, self._source
            )

            token = self._peek()
            if token is None:
                raise self._error(ERROR_EXPECTED_CLOSING_PARENTHESIS)
            if self._is_paren(token, ")"):
                self._advance()
                break
            if token.type == TokenType.COMMA:
                self._advance()
                continue
            raise self._error(
                ERROR_EXPECTED_COMMA_OR_CLOSING_PARENTHESIS.format(token.value), token
            )

        self._count_node()
        return FunctionCallNode(
            name=name_token.value, args=tuple(args), position=name_token.position
        )


def parse(
    source: Union[str, Sequence[Token]],
    precedence_levels: Optional[PrecedenceLevels] = None,
    operators: Optional[Iterable[str]] = None,
    limits: Optional[ExpressionLimits] = None,
    expression: Optional[str] = None,
) -> AstNode:
    """
    Parses an expression string (or an already tokenized expression) into an AST.

    Args:
        source: The expression string, or its tokens
        precedence_levels: Optional precedence tables (defaults when omitted)
        operators: Operator strings for tokenizing a string source
        limits: Optional expression limits
        expression: Source text for error context when ``source`` is tokens

    Returns:
        The parsed AST

    Raises:
        TokenizerError: If tokenization fails
        ParseError: If parsing fails
    """
    if isinstance(source, str):
        tokens = tokenize(source, operators, limits)
        expression = source
    else:
        tokens = source
    parser = Parser(tokens, precedence_levels, expression, limits)
    return parser.parse()
