"""Expression evaluator for Protic attribute expressions.

Evaluation walks an expression tree against an ``EvalContext`` and produces
either a string or ``None``. ``None`` means absent (false, omit the
attribute); any string, including ``""``, means present (true, use it).

Per node:
- Text: its value
- Var: looked up in ``vars`` or ``macro_vars``; ``$?name`` yields None when
  undefined, ``$name`` raises UndefinedVariableError
- Negation: ``""`` if the inner result is absent, otherwise None
- Relation: ``and``/``or`` short-circuit and return operand values
- Comparison: ``""`` if the two results (absence included) compare as
  required, otherwise None
- Concat: present part results joined by ``" "`` or ``""``
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import assert_never

from protic.expressions.errors import (
    MacroVarOutsideMacroError,
    UndefinedVariableError,
)
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
from protic.expressions.parser import parse_expression_strict

__all__ = ["EvalContext", "ExpressionEvaluator", "evaluate"]


@dataclass(frozen=True, slots=True)
class EvalContext:
    """Variable tables for one evaluation.

    Both tables are copied into read-only views on construction, so later
    changes to the caller's dictionaries are not observed.

    Attributes:
        vars: Template variables, resolved by ``$name`` and ``$?name``.
        macro_vars: Macro variables, resolved by ``$@name`` and ``$@?name``.
            None when evaluating outside macro expansion, which is distinct
            from an empty table.
    """

    vars: Mapping[str, str]
    macro_vars: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "vars", MappingProxyType(dict(self.vars)))
        if self.macro_vars is not None:
            object.__setattr__(
                self, "macro_vars", MappingProxyType(dict(self.macro_vars))
            )

    @property
    def in_macro(self) -> bool:
        return self.macro_vars is not None


def _resolve(var: Var, ctx: EvalContext) -> str | None:
    if var.is_macro_var:
        if ctx.macro_vars is None:
            raise MacroVarOutsideMacroError(var.name, var.prefixed)
        table = ctx.macro_vars
    else:
        table = ctx.vars

    if var.name not in table:
        if var.is_optional:
            return None
        raise UndefinedVariableError(var.name, var.prefixed)
    return table[var.name]


def evaluate(expr: AnyExpression, ctx: EvalContext) -> str | None:
    """Evaluate an expression tree against a context.

    Args:
        expr: Root of a parsed (or hand-built) expression tree.
        ctx: Variable tables; only read, never retained.

    Returns:
        The resulting string, or None when the result is absent.

    Raises:
        UndefinedVariableError: A required variable is missing from its table.
        MacroVarOutsideMacroError: A macro variable was referenced while
            ``ctx.macro_vars`` is None.

    Examples:
        >>> ctx = EvalContext(vars={})
        >>> evaluate(Relation(Text("x"), Text("y"), RelationOp.OR), ctx)
        'x'
        >>> evaluate(Negation(Negation(Text(""))), ctx)
        ''
    """
    match expr:
        case Text(value=value):
            return value
        case Var():
            return _resolve(expr, ctx)
        case Negation(inner=inner):
            return None if is_truthy(evaluate(inner, ctx)) else ""
        case Relation(left=left, right=right, op=op):
            left_value = evaluate(left, ctx)
            if op is RelationOp.AND:
                return evaluate(right, ctx) if is_truthy(left_value) else None
            return left_value if is_truthy(left_value) else evaluate(right, ctx)
        case Comparison(left=left, right=right, op=op):
            left_value = evaluate(left, ctx)
            right_value = evaluate(right, ctx)
            if op is ComparisonOp.EQ:
                holds = left_value == right_value
            else:
                holds = left_value != right_value
            return "" if holds else None
        case Concat(parts=parts, add_space=add_space):
            values = [evaluate(part, ctx) for part in parts]
            separator = " " if add_space else ""
            return separator.join(v for v in values if v is not None)
        case _:
            assert_never(expr)


class ExpressionEvaluator:
    """Evaluates expressions against a fixed context.

    Example:
        ```python
        evaluator = ExpressionEvaluator(EvalContext(vars={"width": "10px"}))
        evaluator.evaluate_source("width: + $width")  # "width:10px"
        ```
    """

    def __init__(self, context: EvalContext) -> None:
        self._context = context

    @property
    def context(self) -> EvalContext:
        return self._context

    def evaluate(self, expr: AnyExpression) -> str | None:
        """Evaluate a parsed expression. See ``evaluate``."""
        return evaluate(expr, self._context)

    def evaluate_source(self, source: str) -> str | None:
        """Parse and evaluate attribute-expression text.

        Raises:
            ExpressionSyntaxError: If the source does not parse.
            ExpressionEvaluationError: If evaluation fails.
        """
        return evaluate(parse_expression_strict(source), self._context)
