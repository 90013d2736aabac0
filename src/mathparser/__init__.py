"""
Configurable arithmetic expression engine.

This package tokenizes, parses and evaluates arithmetic expressions with
runtime-configurable operators, precedence tables, operator semantics,
variables and functions. Nothing is ever passed to ``eval``.
"""

# Core types and utilities
from .ast import (
    AstNode,
    AstNodeBase,
    BinaryOperatorNode,
    ConstantNode,
    FunctionCallNode,
    UnaryOperatorNode,
    VariableNode,
    ast_to_expression,
    ast_to_string,
    calculate_ast_depth,
    count_ast_nodes,
)

# Builtins
from .builtins import (
    DEFAULT_FUNCTIONS,
    ExpressionFunction,
    FunctionRegistry,
    call_function,
    is_builtin_function,
)

# Configuration
from .config import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_OPERATOR_FUNCTIONS,
    DEFAULT_OPERATORS,
    DEFAULT_PRECEDENCE_LEVELS,
    MathParserConfig,
    OperatorFunctions,
    PrecedenceLevels,
)

# Facade
from .engine import LruCache, MathParser
from .errors import (
    BuiltinError,
    EvaluationError,
    ExpressionError,
    InvalidLiteralError,
    LexicalErrorDetail,
    LimitExceededError,
    NestingTooDeepError,
    ParseError,
    TokenizerError,
    UndefinedFunctionError,
    UndefinedVariableError,
    UnknownOperatorError,
)

# Evaluator
from .evaluator import (
    EvaluationResult,
    Evaluator,
    evaluate,
    parse_number,
    try_evaluate,
)
from .limits import (
    DEFAULT_EXPRESSION_LIMITS,
    ExpressionLimits,
    check_ast_node_count,
    check_expression_length,
    check_function_arg_count,
)

# Parser
from .parser import (
    Parser,
    parse,
)

# Tokenizer
from .tokenizer import (
    Token,
    Tokenizer,
    TokenType,
    tokenize,
)
from .trie import OperatorTrie, build_trie

__all__ = [
    # AST types
    "AstNode",
    "AstNodeBase",
    "ConstantNode",
    "VariableNode",
    "UnaryOperatorNode",
    "BinaryOperatorNode",
    "FunctionCallNode",
    "count_ast_nodes",
    "calculate_ast_depth",
    "ast_to_string",
    "ast_to_expression",
    # Errors
    "ExpressionError",
    "LexicalErrorDetail",
    "TokenizerError",
    "ParseError",
    "EvaluationError",
    "UndefinedVariableError",
    "UndefinedFunctionError",
    "UnknownOperatorError",
    "InvalidLiteralError",
    "BuiltinError",
    "LimitExceededError",
    "NestingTooDeepError",
    # Limits
    "ExpressionLimits",
    "DEFAULT_EXPRESSION_LIMITS",
    "check_expression_length",
    "check_ast_node_count",
    "check_function_arg_count",
    # Configuration
    "PrecedenceLevels",
    "OperatorFunctions",
    "MathParserConfig",
    "DEFAULT_OPERATORS",
    "DEFAULT_PRECEDENCE_LEVELS",
    "DEFAULT_OPERATOR_FUNCTIONS",
    "DEFAULT_CACHE_SIZE",
    # Tokenizer
    "OperatorTrie",
    "build_trie",
    "Token",
    "TokenType",
    "Tokenizer",
    "tokenize",
    # Parser
    "Parser",
    "parse",
    # Evaluator
    "EvaluationResult",
    "Evaluator",
    "evaluate",
    "parse_number",
    "try_evaluate",
    # Builtins
    "ExpressionFunction",
    "FunctionRegistry",
    "DEFAULT_FUNCTIONS",
    "call_function",
    "is_builtin_function",
    # Facade
    "MathParser",
    "LruCache",
]
