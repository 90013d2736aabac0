"""
Tests for configuration tables and the loadable config model.
"""

import operator

import pytest
from pydantic import ValidationError

from mathparser import (
    DEFAULT_OPERATOR_FUNCTIONS,
    DEFAULT_OPERATORS,
    DEFAULT_PRECEDENCE_LEVELS,
    ExpressionLimits,
    MathParserConfig,
    OperatorFunctions,
    PrecedenceLevels,
)


class TestPrecedenceLevels:
    """Tests for precedence tables."""

    def test_defaults(self):
        assert DEFAULT_OPERATORS == ("+", "-", "*", "/", "%", "^")
        assert dict(DEFAULT_PRECEDENCE_LEVELS.unary) == {"-": 4}
        assert dict(DEFAULT_PRECEDENCE_LEVELS.binary) == {
            "^": 3,
            "*": 2,
            "/": 2,
            "%": 2,
            "+": 1,
            "-": 1,
        }
        assert DEFAULT_PRECEDENCE_LEVELS.right_associative == frozenset({"^"})

    def test_lookups(self):
        levels = DEFAULT_PRECEDENCE_LEVELS
        assert levels.binary_precedence("^") == 3
        assert levels.binary_precedence("?") is None
        assert levels.unary_precedence("-") == 4
        assert levels.unary_precedence("+") is None
        assert levels.is_right_associative("^")
        assert not levels.is_right_associative("-")

    def test_tables_are_read_only(self):
        levels = PrecedenceLevels(binary={"+": 1})
        with pytest.raises(TypeError):
            levels.binary["*"] = 2

    def test_copies_input_mapping(self):
        binary = {"+": 1}
        levels = PrecedenceLevels(binary=binary)
        binary["*"] = 2
        assert "*" not in levels.binary

    def test_equality_is_structural(self):
        assert PrecedenceLevels(binary={"+": 1}) == PrecedenceLevels(binary={"+": 1})
        assert PrecedenceLevels(binary={"+": 1}) != PrecedenceLevels(binary={"+": 2})

    def test_from_none_is_default(self):
        assert PrecedenceLevels.from_value(None) is DEFAULT_PRECEDENCE_LEVELS

    def test_from_instance_is_identity(self):
        levels = PrecedenceLevels(binary={"+": 1})
        assert PrecedenceLevels.from_value(levels) is levels

    def test_from_capitalized_mapping(self):
        levels = PrecedenceLevels.from_value({"Binary": {"^": 2, "+": 1, "-": 1}})
        assert dict(levels.binary) == {"^": 2, "+": 1, "-": 1}
        assert dict(levels.unary) == {}
        assert levels.right_associative == frozenset()

    def test_from_mapping_with_right_associative_flags(self):
        levels = PrecedenceLevels.from_value(
            {
                "Unary": {"-": 3},
                "Binary": {"^": 3, "+": 1},
                "RightAssociativeBinaryOperators": {"^": True, "+": False},
            }
        )
        assert levels.right_associative == frozenset({"^"})
        assert levels.unary_precedence("-") == 3

    def test_from_snake_case_mapping(self):
        levels = PrecedenceLevels.from_value(
            {"binary": {"**": 3}, "right_associative": ["**"]}
        )
        assert levels.is_right_associative("**")

    def test_rejects_non_integer_levels(self):
        with pytest.raises(TypeError):
            PrecedenceLevels.from_value({"binary": {"+": "1"}})

    def test_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            PrecedenceLevels.from_value(["+"])


class TestOperatorFunctions:
    """Tests for operator function tables."""

    def test_default_binary_functions(self):
        binary = DEFAULT_OPERATOR_FUNCTIONS.binary
        assert binary["+"](2, 3) == 5
        assert binary["-"](2, 3) == -1
        assert binary["*"](2, 3) == 6
        assert binary["/"](3, 2) == 1.5
        assert binary["%"](-7, 3) == 2
        assert binary["^"](2, 10) == 1024

    def test_default_unary_functions(self):
        assert DEFAULT_OPERATOR_FUNCTIONS.unary["-"](5) == -5

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            OperatorFunctions(binary={"+": 1})

    def test_from_none_is_default(self):
        assert OperatorFunctions.from_value(None) is DEFAULT_OPERATOR_FUNCTIONS

    def test_from_capitalized_mapping(self):
        functions = OperatorFunctions.from_value({"Binary": {"+": operator.sub}})
        assert functions.binary["+"](5, 3) == 2
        assert dict(functions.unary) == {}


class TestMathParserConfig:
    """Tests for the pydantic configuration model."""

    def test_defaults(self):
        config = MathParserConfig()
        assert config.operators is None
        assert config.precedence_levels is None
        assert config.operator_functions is None
        assert config.variables == {}
        assert config.functions == {}
        assert config.limits is None
        assert config.cache is True

    def test_accepts_camel_case_aliases(self):
        config = MathParserConfig.model_validate(
            {
                "precedenceLevels": {"Binary": {"+": 1}},
                "operatorFunctions": {"Binary": {"+": operator.add}},
            }
        )
        assert isinstance(config.precedence_levels, PrecedenceLevels)
        assert isinstance(config.operator_functions, OperatorFunctions)
        assert config.precedence_levels.binary_precedence("+") == 1

    def test_accepts_field_names(self):
        config = MathParserConfig(
            precedence_levels={"binary": {"+": 1}},
            variables={"x": 2, "y": 0.5},
        )
        assert config.precedence_levels.binary_precedence("+") == 1
        assert config.variables == {"x": 2, "y": 0.5}

    def test_accepts_limits_mapping(self):
        config = MathParserConfig.model_validate({"limits": {"max_nesting_depth": 8}})
        assert isinstance(config.limits, ExpressionLimits)
        assert config.limits.max_nesting_depth == 8
        assert config.limits.max_ast_nodes == 512

    def test_accepts_functions(self):
        config = MathParserConfig(functions={"double": lambda x: x * 2})
        assert config.functions["double"](2) == 4

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            MathParserConfig.model_validate({"bogus": 1})

    def test_rejects_empty_operator(self):
        with pytest.raises(ValidationError):
            MathParserConfig(operators=["+", ""])

    def test_variables_keep_their_values(self):
        config = MathParserConfig(variables={"flag": True, "x": 2, "y": 0.5})
        assert config.variables["flag"] is True
        assert config.variables == {"flag": True, "x": 2, "y": 0.5}

    def test_cache_size(self):
        assert MathParserConfig().cache_size == 256
        assert MathParserConfig.model_validate({"cacheSize": 8}).cache_size == 8
        assert MathParserConfig(cache_size=4).cache_size == 4

    def test_rejects_non_positive_cache_size(self):
        with pytest.raises(ValidationError):
            MathParserConfig(cache_size=0)
