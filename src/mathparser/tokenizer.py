"""
Tokenizer (lexer) for arithmetic expressions.

Converts expression strings into a list of tokens for the parser. Operators
are matched with a longest-match walk over a trie of the configured operator
strings, so multi-character operators such as ``**`` or ``//`` can be added
at runtime.

Problems are not raised as soon as they are found: the tokenizer records
every malformed literal and unexpected character, keeps scanning, and raises
a single aggregate TokenizerError once the whole input has been seen.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from .charclass import (
    is_digit,
    is_exponent_marker,
    is_hex_digit,
    is_hex_marker,
    is_identifier_part,
    is_identifier_start,
    is_parenthesis,
    is_sign,
    is_whitespace,
)
from .config import DEFAULT_OPERATORS
from .errors import LexicalErrorDetail, TokenizerError
from .limits import ExpressionLimits, check_expression_length
from .trie import OperatorTrie, build_trie

logger = logging.getLogger(__name__)

# Returned by _peek past the end of input; never a member of any class.
SENTINEL = "\0"


class TokenType(Enum):
    """Token types produced by the tokenizer."""

    CONSTANT = "Constant"
    VARIABLE = "Variable"
    PARENTHESES = "Parentheses"
    OPERATOR = "Operator"
    COMMA = "Comma"


@dataclass(frozen=True)
class Token:
    """A token produced by the tokenizer."""

    type: TokenType
    value: str
    position: int


_DEFAULT_TRIE = build_trie(DEFAULT_OPERATORS)


class Tokenizer:
    """
    Tokenizer for expression strings.

    An instance can be reused: ``reset`` loads a new source (and optionally a
    new operator set) and ``run`` scans it. Instances hold cursor state and
    must not be shared between threads without external locking.
    """

    def __init__(
        self,
        source: Optional[str] = None,
        operators: Optional[Iterable[str]] = None,
        limits: Optional[ExpressionLimits] = None,
    ):
        self._limits = limits
        self._source: Optional[str] = None
        self._operators: Optional[tuple] = None
        self._trie: OperatorTrie = _DEFAULT_TRIE
        self._position = 0
        self._tokens: List[Token] = []
        self._errors: List[LexicalErrorDetail] = []
        if operators is not None:
            operators = tuple(operators)
        self.set_operators(operators)
        if source is not None:
            self.reset(source, operators)

    @property
    def operators(self) -> tuple:
        return self._trie.operators

    def set_operators(self, operators: Optional[Iterable[str]]) -> None:
        """Replaces the operator set; the trie is only rebuilt when it changes."""
        if operators is None:
            self._operators = None
            self._trie = _DEFAULT_TRIE
            return

        operators = tuple(operators)
        if operators != self._operators:
            self._trie = build_trie(operators)
            self._operators = operators

    def reset(self, source: str, operators: Optional[Iterable[str]] = None) -> None:
        """
        Resets the tokenizer to scan ``source`` from the beginning.

        ``operators`` replaces the operator set; None restores the defaults.
        """
        if not isinstance(source, str):
            raise TypeError(f"Expression must be a string, got {type(source).__name__}")
        self.set_operators(operators)
        self._source = source
        self._position = 0
        self._tokens = []
        self._errors = []

    def run(self) -> List[Token]:
        """Tokenizes the loaded source and returns all tokens."""
        if self._source is None:
            raise ValueError("No expression loaded; call reset() first")

        check_expression_length(self._source, self._limits)

        while not self._is_at_end():
            self._scan_token()

        if self._errors:
            raise TokenizerError.from_details(self._errors, self._source)

        logger.debug(
            "expression_tokenized",
            extra={"expression_length": len(self._source), "token_count": len(self._tokens)},
        )
        return self._tokens

    def tokenize(self, source: str, operators: Optional[Iterable[str]] = None) -> List[Token]:
        """Convenience for ``reset`` followed by ``run``."""
        self.reset(source, operators)
        return self.run()

    # ============================================================
    # Cursor Helpers
    # ============================================================

    def _is_at_end(self) -> bool:
        return self._position >= len(self._source)

    def _peek(self, offset: int = 0) -> str:
        index = self._position + offset
        if index >= len(self._source):
            return SENTINEL
        return self._source[index]

    def _advance(self) -> str:
        ch = self._source[self._position]
        self._position += 1
        return ch

    def _add_token(self, token_type: TokenType, value: str, position: int) -> None:
        self._tokens.append(Token(token_type, value, position))

    def _error(self, message: str, position: int) -> None:
        self._errors.append(LexicalErrorDetail(message, position))

    # ============================================================
    # Scanning
    # ============================================================

    def _scan_token(self) -> None:
        ch = self._peek()
        start_position = self._position

        if is_whitespace(ch):
            self._position += 1
            return

        if is_parenthesis(ch):
            self._position += 1
            self._add_token(TokenType.PARENTHESES, ch, start_position)
            return

        if is_identifier_start(ch):
            self._scan_identifier(start_position)
            return

        if ch == ",":
            self._position += 1
            self._add_token(TokenType.COMMA, ch, start_position)
            return

        operator = self._trie.match(self._source, self._position)
        if operator is not None:
            self._position += len(operator)
            self._add_token(TokenType.OPERATOR, operator, start_position)
            return

        if is_digit(ch) or (ch == "." and is_digit(self._peek(1))):
            self._scan_number(start_position)
            return

        self._position += 1
        self._error(
            f"Unexpected character: '{ch}', expected one of: whitespace, "
            "parentheses, comma, operator, number or identifier",
            start_position,
        )

    def _scan_identifier(self, start_position: int) -> None:
        self._position += 1
        while is_identifier_part(self._peek()):
            self._position += 1

        value = self._source[start_position : self._position]
        self._add_token(TokenType.VARIABLE, value, start_position)

    def _consume_digits(self, predicate=is_digit) -> int:
        """Consumes a run of digits and returns how many were consumed."""
        count = 0
        while predicate(self._peek()):
            self._position += 1
            count += 1
        return count

    def _scan_number(self, start_position: int) -> None:
        valid = True

        # Hexadecimal literal
        if self._peek() == "0" and is_hex_marker(self._peek(1)):
            self._position += 2
            if self._consume_digits(is_hex_digit) == 0:
                self._error(
                    "Invalid number: expected hexadecimal digits after '0x'",
                    self._position,
                )
                valid = False
            self._finish_number(start_position, valid)
            return

        # Integer part (may be empty for ".5")
        self._consume_digits()

        # Fractional part
        if self._peek() == ".":
            self._position += 1
            if self._consume_digits() == 0:
                self._error(
                    "Invalid number: expected digits after the decimal point",
                    self._position,
                )
                valid = False

        # Exponent part
        if is_exponent_marker(self._peek()):
            self._position += 1
            if is_sign(self._peek()):
                self._position += 1
            if self._consume_digits() == 0:
                self._error(
                    "Invalid number: expected exponent digits",
                    self._position,
                )
                valid = False

        self._finish_number(start_position, valid)

    def _finish_number(self, start_position: int, valid: bool) -> None:
        if valid:
            value = self._source[start_position : self._position]
            self._add_token(TokenType.CONSTANT, value, start_position)


def tokenize(
    source: str,
    operators: Optional[Iterable[str]] = None,
    limits: Optional[ExpressionLimits] = None,
) -> List[Token]:
    """
    Tokenizes an expression string into tokens.

    Args:
        source: The expression string to tokenize
        operators: Operator strings to recognize (defaults to + - * / % ^)
        limits: Optional expression limits

    Returns:
        List of tokens

    Raises:
        TokenizerError: If the expression contains invalid tokens
    """
    tokenizer = Tokenizer(source, operators, limits)
    return tokenizer.run()
