"""
Configuration model shared by the tokenizer, parser and evaluator.

Runtime tables (precedence levels, operator functions) are frozen dataclasses
wrapping read-only mappings. The module-level defaults are built once at
import and handed to every stage that is not given an override; nothing in
the engine ever mutates them.

``MathParserConfig`` is the pydantic model used to load a complete engine
configuration from plain data (JSON/YAML documents, keyword dicts).
"""

from __future__ import annotations

import operator as _op
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .limits import ExpressionLimits

Number = Union[int, float]

UnaryOperatorFunction = Callable[[Any], Any]
BinaryOperatorFunction = Callable[[Any, Any], Any]

# Key spellings accepted when reading tables from plain mappings.
_UNARY_KEYS = ("unary", "Unary")
_BINARY_KEYS = ("binary", "Binary")
_RIGHT_ASSOCIATIVE_KEYS = (
    "right_associative",
    "rightAssociative",
    "RightAssociative",
    "RightAssociativeBinaryOperators",
)


def _lookup(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _freeze_mapping(value: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


def _operator_set(value: Any) -> FrozenSet[str]:
    """Accepts either an iterable of operators or a mapping of operator -> flag."""
    if value is None:
        return frozenset()
    if isinstance(value, Mapping):
        return frozenset(op for op, enabled in value.items() if enabled)
    if isinstance(value, str):
        return frozenset((value,))
    return frozenset(value)


@dataclass(frozen=True, eq=False)
class PrecedenceLevels:
    """Operator precedence tables consumed by the parser."""

    unary: Mapping[str, int] = field(default_factory=dict)
    binary: Mapping[str, int] = field(default_factory=dict)
    right_associative: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "unary", _freeze_mapping(self.unary))
        object.__setattr__(self, "binary", _freeze_mapping(self.binary))
        object.__setattr__(
            self, "right_associative", _operator_set(self.right_associative)
        )

    def unary_precedence(self, operator: str) -> Optional[int]:
        return self.unary.get(operator)

    def binary_precedence(self, operator: str) -> Optional[int]:
        return self.binary.get(operator)

    def is_right_associative(self, operator: str) -> bool:
        return operator in self.right_associative

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PrecedenceLevels):
            return NotImplemented
        return (
            dict(self.unary) == dict(other.unary)
            and dict(self.binary) == dict(other.binary)
            and self.right_associative == other.right_associative
        )

    @classmethod
    def from_value(cls, value: Union["PrecedenceLevels", Mapping[str, Any], None]) -> "PrecedenceLevels":
        """
        Normalizes a precedence configuration.

        Accepts an existing instance, None (the defaults) or a mapping with
        ``unary``/``binary``/``right_associative`` keys (capitalized and
        camelCase spellings are accepted too). Missing tables are empty.
        """
        if value is None:
            return DEFAULT_PRECEDENCE_LEVELS
        if isinstance(value, PrecedenceLevels):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(
                f"Precedence levels must be a mapping, got {type(value).__name__}"
            )

        unary = _lookup(value, _UNARY_KEYS) or {}
        binary = _lookup(value, _BINARY_KEYS) or {}
        for table_name, table in (("unary", unary), ("binary", binary)):
            for op, level in table.items():
                if isinstance(level, bool) or not isinstance(level, int):
                    raise TypeError(
                        f"Precedence of {table_name} operator {op!r} must be an "
                        f"integer, got {level!r}"
                    )

        return cls(
            unary=unary,
            binary=binary,
            right_associative=_operator_set(_lookup(value, _RIGHT_ASSOCIATIVE_KEYS)),
        )


@dataclass(frozen=True, eq=False)
class OperatorFunctions:
    """Operator implementations consumed by the evaluator."""

    unary: Mapping[str, UnaryOperatorFunction] = field(default_factory=dict)
    binary: Mapping[str, BinaryOperatorFunction] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "unary", _freeze_mapping(self.unary))
        object.__setattr__(self, "binary", _freeze_mapping(self.binary))
        for table_name, table in (("unary", self.unary), ("binary", self.binary)):
            for op, fn in table.items():
                if not callable(fn):
                    raise TypeError(
                        f"{table_name.capitalize()} operator {op!r} must map to a "
                        f"callable, got {type(fn).__name__}"
                    )

    @classmethod
    def from_value(
        cls, value: Union["OperatorFunctions", Mapping[str, Any], None]
    ) -> "OperatorFunctions":
        """Normalizes an operator-function configuration (see PrecedenceLevels.from_value)."""
        if value is None:
            return DEFAULT_OPERATOR_FUNCTIONS
        if isinstance(value, OperatorFunctions):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(
                f"Operator functions must be a mapping, got {type(value).__name__}"
            )
        return cls(
            unary=_lookup(value, _UNARY_KEYS) or {},
            binary=_lookup(value, _BINARY_KEYS) or {},
        )


# ============================================================
# Defaults
# ============================================================

DEFAULT_OPERATORS = ("+", "-", "*", "/", "%", "^")

# Entries kept per facade cache when no size is given.
DEFAULT_CACHE_SIZE = 256

DEFAULT_PRECEDENCE_LEVELS = PrecedenceLevels(
    unary={"-": 4},
    binary={"^": 3, "*": 2, "/": 2, "%": 2, "+": 1, "-": 1},
    right_associative=frozenset({"^"}),
)


# Integer powers whose result would exceed this many bits are computed in
# floating point instead, so "9^9^9" overflows promptly instead of hanging.
MAX_EXACT_POWER_BITS = 4096


def _power(left: Number, right: Number) -> Number:
    if (
        isinstance(left, int)
        and isinstance(right, int)
        and right > 0
        and abs(left) > 1
        and left.bit_length() * right > MAX_EXACT_POWER_BITS
    ):
        left = float(left)
    result = left**right
    # Negative bases with fractional exponents would yield a complex number.
    if isinstance(result, complex):
        raise ValueError(f"math domain error: {left} ^ {right}")
    return result


DEFAULT_OPERATOR_FUNCTIONS = OperatorFunctions(
    unary={"-": _op.neg},
    binary={
        "+": _op.add,
        "-": _op.sub,
        "*": _op.mul,
        "/": _op.truediv,
        "%": _op.mod,
        "^": _power,
    },
)


# ============================================================
# Loadable configuration
# ============================================================


class MathParserConfig(BaseModel):
    """Complete engine configuration, loadable from plain data."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    operators: Optional[List[str]] = Field(default=None)

    precedence_levels: Optional[Any] = Field(
        default=None, alias="precedenceLevels"
    )

    operator_functions: Optional[Any] = Field(
        default=None, alias="operatorFunctions"
    )

    variables: Dict[str, Any] = Field(default_factory=dict)

    functions: Dict[str, Callable[..., Any]] = Field(default_factory=dict)

    limits: Optional[ExpressionLimits] = Field(default=None)

    cache: bool = Field(default=True)

    cache_size: int = Field(default=DEFAULT_CACHE_SIZE, ge=1, alias="cacheSize")

    @field_validator("operators")
    @classmethod
    def _check_operators(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is not None and any(not op for op in value):
            raise ValueError("operators must be non-empty strings")
        return value

    @field_validator("precedence_levels", mode="before")
    @classmethod
    def _coerce_precedence_levels(cls, value: Any) -> Optional[PrecedenceLevels]:
        if value is None:
            return None
        return PrecedenceLevels.from_value(value)

    @field_validator("operator_functions", mode="before")
    @classmethod
    def _coerce_operator_functions(cls, value: Any) -> Optional[OperatorFunctions]:
        if value is None:
            return None
        return OperatorFunctions.from_value(value)
