"""
Character-class lookup tables used by the tokenizer.

Each table is a 256-entry tuple of booleans indexed by code point, built once
at import so classifying a character in the scanning loop is a single index
operation. Code points outside the table are never members of any class.
"""

from typing import Callable, Tuple

CharTable = Tuple[bool, ...]

TABLE_SIZE = 256


def make_lookup_table(predicate: Callable[[str], bool]) -> CharTable:
    """Evaluates ``predicate`` once for every code point in the table range."""
    return tuple(predicate(chr(code)) for code in range(TABLE_SIZE))


def in_class(table: CharTable, ch: str) -> bool:
    """Checks membership of a single character (or the empty string) in a table."""
    if not ch:
        return False
    code = ord(ch)
    return code < TABLE_SIZE and table[code]


WHITESPACE = make_lookup_table(lambda ch: ch in " \t\n\r\f\v")
DIGIT = make_lookup_table(lambda ch: "0" <= ch <= "9")
HEX_DIGIT = make_lookup_table(
    lambda ch: "0" <= ch <= "9" or "a" <= ch <= "f" or "A" <= ch <= "F"
)
IDENTIFIER_START = make_lookup_table(
    lambda ch: "a" <= ch <= "z" or "A" <= ch <= "Z" or ch == "_"
)
IDENTIFIER_PART = make_lookup_table(
    lambda ch: "a" <= ch <= "z" or "A" <= ch <= "Z" or ch == "_" or "0" <= ch <= "9"
)
SIGN = make_lookup_table(lambda ch: ch in "+-")
EXPONENT_MARKER = make_lookup_table(lambda ch: ch in "eE")
HEX_MARKER = make_lookup_table(lambda ch: ch in "xX")
PARENTHESIS = make_lookup_table(lambda ch: ch in "()")


def is_whitespace(ch: str) -> bool:
    return in_class(WHITESPACE, ch)


def is_digit(ch: str) -> bool:
    return in_class(DIGIT, ch)


def is_hex_digit(ch: str) -> bool:
    return in_class(HEX_DIGIT, ch)


def is_identifier_start(ch: str) -> bool:
    return in_class(IDENTIFIER_START, ch)


def is_identifier_part(ch: str) -> bool:
    return in_class(IDENTIFIER_PART, ch)


def is_sign(ch: str) -> bool:
    return in_class(SIGN, ch)


def is_exponent_marker(ch: str) -> bool:
    return in_class(EXPONENT_MARKER, ch)


def is_hex_marker(ch: str) -> bool:
    return in_class(HEX_MARKER, ch)


def is_parenthesis(ch: str) -> bool:
    return in_class(PARENTHESIS, ch)
