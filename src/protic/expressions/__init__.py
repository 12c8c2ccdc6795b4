"""Attribute expressions for Protic templates.

This module provides the small expression language used inside attribute
directives, e.g. conditionally merging classes or interpolating variables:

    <div +class="'card' $?extra (!$?enabled and 'disabled')">
    <div +style="width: + $width">

Expression Syntax
-----------------
- Variables: ``$name``, optional ``$?name``, macro ``$@name`` / ``$@?name``
- Literals: ``'single'``, ``"double"`` (backslash escapes), barewords
- Juxtaposition ``a b`` joins with a space; ``a + b`` joins without one
- ``!a``, ``a == b``, ``a != b``, ``a and b``, ``a or b``, parentheses

Every result is a string or None. None means absent: falsy, and the
attribute is omitted. Any string, the empty string included, is truthy.

Module Structure
----------------
- nodes.py: Immutable expression tree
- parser.py: Lark-based parser (grammar.lark)
- evaluator.py: EvalContext and evaluation
- engine.py: Cached facade for template compilers
- errors.py: Expression-specific error types

Parsing and evaluation are pure and keep no shared mutable state, so both
are safe to use from several threads at once.
"""

from __future__ import annotations

from protic.expressions.engine import ExpressionEngine
from protic.expressions.errors import (
    ExpressionError,
    ExpressionErrorInfo,
    ExpressionEvaluationError,
    ExpressionSyntaxError,
    MacroVarOutsideMacroError,
    UndefinedVariableError,
)
from protic.expressions.evaluator import EvalContext, ExpressionEvaluator, evaluate
from protic.expressions.nodes import (
    AnyExpression,
    Comparison,
    ComparisonOp,
    Concat,
    Negation,
    Relation,
    RelationOp,
    Text,
    Var,
    is_truthy,
)
from protic.expressions.parser import (
    parse_expression,
    parse_expression_strict,
    validate_expression,
)

__all__: list[str] = [
    # Error types
    "ExpressionError",
    "ExpressionSyntaxError",
    "ExpressionEvaluationError",
    "UndefinedVariableError",
    "MacroVarOutsideMacroError",
    "ExpressionErrorInfo",
    # Tree
    "AnyExpression",
    "Relation",
    "RelationOp",
    "Comparison",
    "ComparisonOp",
    "Negation",
    "Concat",
    "Var",
    "Text",
    "is_truthy",
    # Parser functions
    "parse_expression",
    "parse_expression_strict",
    "validate_expression",
    # Evaluation
    "EvalContext",
    "ExpressionEvaluator",
    "evaluate",
    "ExpressionEngine",
]
