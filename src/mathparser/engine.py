"""
MathParser: the facade that wires tokenizer, parser and evaluator together.

The facade owns the current configuration and three memo caches:

- tokens, keyed by expression text (invalidated when operators change);
- ASTs, keyed by expression text (also invalidated when precedence changes);
- results, keyed by AST (also invalidated when variables, functions or
  operator functions change).

Each stage instance is reused across calls under a reentrant lock, so a
single MathParser may be shared between threads. Each cache keeps at most
``cache_size`` entries and evicts the least recently used one first.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Union

from .ast import AstNode
from .builtins import ExpressionFunction
from .config import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_OPERATORS,
    MathParserConfig,
    OperatorFunctions,
    PrecedenceLevels,
)
from .evaluator import Evaluator
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits
from .parser import Parser
from .tokenizer import Token, Tokenizer

logger = logging.getLogger(__name__)

PrecedenceInput = Union[PrecedenceLevels, Mapping[str, Any], None]
OperatorFunctionsInput = Union[OperatorFunctions, Mapping[str, Any], None]

_MISSING = object()


class LruCache:
    """Mapping that keeps the most recently used ``maxsize`` entries."""

    def __init__(self, maxsize: int = DEFAULT_CACHE_SIZE):
        if maxsize < 1:
            raise ValueError(f"Cache size must be at least 1, got {maxsize}")
        self.maxsize = maxsize
        self._entries: "OrderedDict[Hashable, Any]" = OrderedDict()

    def get(self, key: Hashable, default: Any = None) -> Any:
        value = self._entries.get(key, _MISSING)
        if value is _MISSING:
            return default
        self._entries.move_to_end(key)
        return value

    def __getitem__(self, key: Hashable) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __setitem__(self, key: Hashable, value: Any) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class MathParser:
    """
    Configurable arithmetic expression engine.

    Example:
        >>> parser = MathParser(variables={"x": 10})
        >>> parser.solve("2 + x * 3")
        32
    """

    def __init__(
        self,
        operators: Optional[Iterable[str]] = None,
        precedence_levels: PrecedenceInput = None,
        variables: Optional[Mapping[str, Any]] = None,
        operator_functions: OperatorFunctionsInput = None,
        functions: Optional[Mapping[str, ExpressionFunction]] = None,
        limits: Optional[ExpressionLimits] = None,
        cache: bool = True,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ):
        self._lock = threading.RLock()
        self._cache_enabled = cache
        self._limits = limits or DEFAULT_EXPRESSION_LIMITS

        self._tokenizer = Tokenizer(limits=self._limits)
        self._parser = Parser(limits=self._limits)
        self._evaluator = Evaluator()

        self._token_cache = LruCache(cache_size)
        self._ast_cache = LruCache(cache_size)
        self._result_cache = LruCache(cache_size)

        self.reset_to_initial_state(
            operators, precedence_levels, variables, operator_functions, functions
        )

    @classmethod
    def from_config(
        cls, config: Union[MathParserConfig, Mapping[str, Any]]
    ) -> "MathParser":
        """Creates a MathParser from a MathParserConfig or its plain-data form."""
        if not isinstance(config, MathParserConfig):
            config = MathParserConfig.model_validate(dict(config))

        return cls(
            operators=config.operators,
            precedence_levels=config.precedence_levels,
            variables=config.variables,
            operator_functions=config.operator_functions,
            functions=config.functions,
            limits=config.limits,
            cache=config.cache,
            cache_size=config.cache_size,
        )

    # ============================================================
    # Configuration
    # ============================================================

    @property
    def operators(self) -> tuple:
        return self._operators

    @property
    def precedence_levels(self) -> PrecedenceLevels:
        return self._precedence_levels

    @property
    def operator_functions(self) -> OperatorFunctions:
        return self._operator_functions

    @property
    def variables(self) -> Mapping[str, Any]:
        """A snapshot of the current variable bindings."""
        return dict(self._variables)

    @property
    def functions(self) -> Mapping[str, ExpressionFunction]:
        """A snapshot of the user function table (built-ins not included)."""
        return dict(self._functions)

    @property
    def limits(self) -> ExpressionLimits:
        return self._limits

    def reset_to_initial_state(
        self,
        operators: Optional[Iterable[str]] = None,
        precedence_levels: PrecedenceInput = None,
        variables: Optional[Mapping[str, Any]] = None,
        operator_functions: OperatorFunctionsInput = None,
        functions: Optional[Mapping[str, ExpressionFunction]] = None,
    ) -> None:
        """
        Restores every setting to the given values, or to the defaults for
        those omitted, and clears all caches.
        """
        # Nothing is committed until every value has been validated.
        new_operators = tuple(operators) if operators is not None else DEFAULT_OPERATORS
        new_precedence_levels = PrecedenceLevels.from_value(precedence_levels)
        new_operator_functions = OperatorFunctions.from_value(operator_functions)
        new_variables: Dict[str, Any] = dict(variables or {})
        new_functions: Dict[str, ExpressionFunction] = dict(functions or {})
        for name, fn in new_functions.items():
            self._check_function(name, fn)

        with self._lock:
            # Leaves the tokenizer untouched when an operator is rejected.
            self._tokenizer.set_operators(new_operators)

            self._operators = new_operators
            self._precedence_levels = new_precedence_levels
            self._operator_functions = new_operator_functions
            self._variables = new_variables
            self._functions = new_functions
            self.clear_caches()

        logger.debug(
            "math_parser_reset",
            extra={
                "operators": self._operators,
                "variable_count": len(self._variables),
                "function_count": len(self._functions),
            },
        )

    def set_operators(self, operators: Iterable[str]) -> None:
        """Replaces the operator set recognized by the tokenizer."""
        operators = tuple(operators)
        with self._lock:
            self._tokenizer.set_operators(operators)
            self._operators = operators
            self._invalidate_tokens()
        logger.debug("operators_changed", extra={"operators": operators})

    def set_precedence_levels(self, precedence_levels: PrecedenceInput) -> None:
        """Replaces the parser's precedence tables (None restores the defaults)."""
        with self._lock:
            self._precedence_levels = PrecedenceLevels.from_value(precedence_levels)
            self._invalidate_asts()
        logger.debug(
            "precedence_levels_changed",
            extra={
                "unary": dict(self._precedence_levels.unary),
                "binary": dict(self._precedence_levels.binary),
            },
        )

    def set_operator_functions(self, operator_functions: OperatorFunctionsInput) -> None:
        """Replaces the evaluator's operator functions (None restores the defaults)."""
        with self._lock:
            self._operator_functions = OperatorFunctions.from_value(operator_functions)
            self._invalidate_results()
        logger.debug("operator_functions_changed")

    def add_operator(
        self,
        operator: str,
        *,
        binary: Optional[Callable[[Any, Any], Any]] = None,
        binary_precedence: Optional[int] = None,
        unary: Optional[Callable[[Any], Any]] = None,
        unary_precedence: Optional[int] = None,
        right_associative: bool = False,
    ) -> None:
        """
        Registers one operator across tokenizer, parser and evaluator.

        A binary form needs both ``binary`` and ``binary_precedence``; a unary
        form needs both ``unary`` and ``unary_precedence``. At least one form
        must be given.
        """
        if (binary is None) != (binary_precedence is None):
            raise ValueError("binary and binary_precedence must be given together")
        if (unary is None) != (unary_precedence is None):
            raise ValueError("unary and unary_precedence must be given together")
        if binary is None and unary is None:
            raise ValueError(f"Operator {operator!r} needs a unary or binary form")

        with self._lock:
            levels = self._precedence_levels
            functions = self._operator_functions
            unary_levels = dict(levels.unary)
            binary_levels = dict(levels.binary)
            right = set(levels.right_associative)
            unary_functions = dict(functions.unary)
            binary_functions = dict(functions.binary)

            if binary is not None:
                binary_levels[operator] = binary_precedence
                binary_functions[operator] = binary
                if right_associative:
                    right.add(operator)
                else:
                    right.discard(operator)
            if unary is not None:
                unary_levels[operator] = unary_precedence
                unary_functions[operator] = unary

            operators = self._operators
            if operator not in operators:
                operators = operators + (operator,)

            self.set_operators(operators)
            self.set_precedence_levels(
                PrecedenceLevels(
                    unary=unary_levels,
                    binary=binary_levels,
                    right_associative=frozenset(right),
                )
            )
            self.set_operator_functions(
                OperatorFunctions(unary=unary_functions, binary=binary_functions)
            )

    def add_variable(self, name: str, value: Any) -> None:
        """Binds (or rebinds) a single variable."""
        with self._lock:
            self._variables[name] = value
            self._invalidate_results()

    def add_variables(self, variables: Mapping[str, Any]) -> None:
        """Binds several variables, keeping existing bindings."""
        with self._lock:
            self._variables.update(variables)
            self._invalidate_results()

    def set_variables(self, variables: Mapping[str, Any]) -> None:
        """Replaces all variable bindings."""
        with self._lock:
            self._variables = dict(variables)
            self._invalidate_results()

    def remove_variable(self, name: str) -> None:
        """Removes a binding; raises KeyError if it does not exist."""
        with self._lock:
            del self._variables[name]
            self._invalidate_results()

    def add_function(self, name: str, fn: ExpressionFunction) -> None:
        """Registers (or overrides) a function callable from expressions."""
        self._check_function(name, fn)
        with self._lock:
            self._functions[name] = fn
            self._invalidate_results()

    def add_functions(self, functions: Mapping[str, ExpressionFunction]) -> None:
        """Registers several functions, keeping existing ones."""
        for name, fn in functions.items():
            self._check_function(name, fn)
        with self._lock:
            self._functions.update(functions)
            self._invalidate_results()

    def set_functions(self, functions: Mapping[str, ExpressionFunction]) -> None:
        """Replaces the user function table. Built-ins remain available."""
        for name, fn in functions.items():
            self._check_function(name, fn)
        with self._lock:
            self._functions = dict(functions)
            self._invalidate_results()

    def remove_function(self, name: str) -> None:
        """Removes a user function; raises KeyError if it does not exist."""
        with self._lock:
            del self._functions[name]
            self._invalidate_results()

    @staticmethod
    def _check_function(name: str, fn: Any) -> None:
        if not callable(fn):
            raise TypeError(f"Function {name!r} must be callable, got {type(fn).__name__}")

    # ============================================================
    # Caches
    # ============================================================

    def clear_caches(self) -> None:
        """Drops every memoized token list, AST and result."""
        with self._lock:
            self._token_cache.clear()
            self._ast_cache.clear()
            self._result_cache.clear()

    def _invalidate_tokens(self) -> None:
        self._token_cache.clear()
        self._invalidate_asts()

    def _invalidate_asts(self) -> None:
        self._ast_cache.clear()
        self._invalidate_results()

    def _invalidate_results(self) -> None:
        if self._result_cache:
            logger.debug(
                "result_cache_invalidated", extra={"entries": len(self._result_cache)}
            )
        self._result_cache.clear()

    # ============================================================
    # Stages
    # ============================================================

    def tokenize(self, expression: str) -> List[Token]:
        """Tokenizes an expression with the current operator set."""
        with self._lock:
            if self._cache_enabled and expression in self._token_cache:
                return list(self._token_cache[expression])

            self._tokenizer.reset(expression, self._operators)
            tokens = self._tokenizer.run()

            if self._cache_enabled:
                self._token_cache[expression] = tokens
            return list(tokens)

    def parse(self, tokens: List[Token], expression: Optional[str] = None) -> AstNode:
        """
        Parses tokens with the current precedence tables.

        ``expression`` is the source text, used for error context.
        """
        with self._lock:
            self._parser.reset(tokens, self._precedence_levels, expression)
            return self._parser.parse()

    def evaluate(self, ast: AstNode, expression: Optional[str] = None) -> Any:
        """Evaluates an AST against the current variables and functions."""
        with self._lock:
            if self._cache_enabled and ast in self._result_cache:
                return self._result_cache[ast]

            self._evaluator.reset(
                ast,
                self._variables,
                self._operator_functions,
                self._functions,
                expression,
            )
            value = self._evaluator.evaluate()

            if self._cache_enabled:
                self._result_cache[ast] = value
            return value

    def solve(self, expression: str) -> Any:
        """
        Tokenizes, parses and evaluates an expression.

        Raises:
            TokenizerError: If the expression has lexical errors
            ParseError: If the expression is not well formed
            EvaluationError: If evaluation fails
            LimitExceededError: If the expression exceeds the configured limits
        """
        with self._lock:
            ast = self._ast_cache.get(expression) if self._cache_enabled else None
            if ast is None:
                tokens = self.tokenize(expression)
                ast = self.parse(tokens, expression)
                if self._cache_enabled:
                    self._ast_cache[expression] = ast
            return self.evaluate(ast, expression)
