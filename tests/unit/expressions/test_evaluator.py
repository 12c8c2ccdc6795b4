"""Unit tests for expression evaluation.

Test scenarios:
1. Literals and variable lookup in both tables
2. Presence-based truthiness and negation
3. Short-circuiting relations
4. Comparison with absence as a value
5. Concatenation policies
6. EvalContext immutability
"""

from __future__ import annotations

import dataclasses

import pytest

from protic.expressions.errors import (
    ExpressionEvaluationError,
    ExpressionSyntaxError,
    MacroVarOutsideMacroError,
    UndefinedVariableError,
)
from protic.expressions.evaluator import EvalContext, ExpressionEvaluator, evaluate
from protic.expressions.nodes import (
    Comparison,
    ComparisonOp,
    Concat,
    Negation,
    Relation,
    RelationOp,
    Text,
    Var,
)
from protic.expressions.parser import parse_expression

MISSING = Var("missing", is_optional=True)
UNDEFINED = Var("undefined")


@pytest.fixture
def ctx() -> EvalContext:
    return EvalContext(vars={"a": "x", "b": "y", "empty": ""})


class TestText:
    @pytest.mark.parametrize("value", ["", "x", "hello world"])
    def test_returns_value(self, ctx: EvalContext, value: str) -> None:
        assert evaluate(Text(value), ctx) == value


class TestVariableLookup:
    """Test Var resolution against vars and macro_vars."""

    def test_defined_variable(self, ctx: EvalContext) -> None:
        assert evaluate(Var("a"), ctx) == "x"

    def test_empty_string_value_is_present(self, ctx: EvalContext) -> None:
        assert evaluate(Var("empty"), ctx) == ""

    def test_optional_missing_is_absent(self, ctx: EvalContext) -> None:
        assert evaluate(MISSING, ctx) is None

    def test_optional_defined_returns_value(self, ctx: EvalContext) -> None:
        assert evaluate(Var("b", is_optional=True), ctx) == "y"

    def test_required_missing_raises(self, ctx: EvalContext) -> None:
        with pytest.raises(UndefinedVariableError) as exc_info:
            evaluate(Var("width"), ctx)
        error = exc_info.value
        assert error.name == "width"
        assert error.variable == "$width"
        assert str(error) == "undefined variable $width"

    def test_empty_vars_table(self) -> None:
        with pytest.raises(UndefinedVariableError):
            evaluate(Var("a"), EvalContext(vars={}))

    def test_macro_var_outside_macro_raises(self) -> None:
        with pytest.raises(MacroVarOutsideMacroError) as exc_info:
            evaluate(Var("n", is_macro_var=True), EvalContext(vars={"n": "t"}))
        error = exc_info.value
        assert error.name == "n"
        assert error.variable == "$@n"
        assert str(error) == "macro var $@n requested in non-macro"

    def test_optional_macro_var_outside_macro_still_raises(self) -> None:
        with pytest.raises(MacroVarOutsideMacroError) as exc_info:
            evaluate(
                Var("n", is_macro_var=True, is_optional=True), EvalContext(vars={})
            )
        assert exc_info.value.variable == "$@?n"

    def test_macro_var_inside_macro(self) -> None:
        ctx = EvalContext(vars={}, macro_vars={"n": "v"})
        assert evaluate(Var("n", is_macro_var=True), ctx) == "v"

    def test_empty_macro_table_is_not_absent(self) -> None:
        ctx = EvalContext(vars={}, macro_vars={})
        assert evaluate(Var("n", is_macro_var=True, is_optional=True), ctx) is None
        with pytest.raises(UndefinedVariableError) as exc_info:
            evaluate(Var("n", is_macro_var=True), ctx)
        assert exc_info.value.variable == "$@n"

    def test_tables_are_separate(self) -> None:
        ctx = EvalContext(vars={"n": "template"}, macro_vars={"m": "macro"})
        assert evaluate(Var("n", is_macro_var=True, is_optional=True), ctx) is None
        assert evaluate(Var("m", is_optional=True), ctx) is None
        assert evaluate(Var("n"), ctx) == "template"
        assert evaluate(Var("m", is_macro_var=True), ctx) == "macro"


class TestNegation:
    def test_negating_absence_gives_empty_string(self, ctx: EvalContext) -> None:
        assert evaluate(Negation(MISSING), ctx) == ""

    def test_negating_empty_string_gives_absence(self, ctx: EvalContext) -> None:
        assert evaluate(Negation(Text("")), ctx) is None

    def test_negating_value_gives_absence(self, ctx: EvalContext) -> None:
        assert evaluate(Negation(Var("a")), ctx) is None

    def test_double_negation_loses_content(self, ctx: EvalContext) -> None:
        assert evaluate(Negation(Negation(Text(""))), ctx) == ""
        assert evaluate(Negation(Negation(Var("a"))), ctx) == ""
        assert evaluate(Negation(Negation(MISSING)), ctx) is None


class TestRelation:
    """Test short-circuiting and/or."""

    def test_and_short_circuits_on_absent_left(self, ctx: EvalContext) -> None:
        expr = Relation(MISSING, UNDEFINED, RelationOp.AND)
        assert evaluate(expr, ctx) is None

    def test_and_returns_right_value(self, ctx: EvalContext) -> None:
        assert evaluate(Relation(Text(""), Text("y"), RelationOp.AND), ctx) == "y"

    def test_and_returns_absent_right(self, ctx: EvalContext) -> None:
        assert evaluate(Relation(Text("x"), MISSING, RelationOp.AND), ctx) is None

    def test_and_evaluates_right_when_left_present(self, ctx: EvalContext) -> None:
        with pytest.raises(UndefinedVariableError):
            evaluate(Relation(Text("x"), UNDEFINED, RelationOp.AND), ctx)

    def test_or_returns_left_verbatim(self, ctx: EvalContext) -> None:
        assert evaluate(Relation(Text("x"), Text("y"), RelationOp.OR), ctx) == "x"

    def test_or_short_circuits_on_present_left(self, ctx: EvalContext) -> None:
        assert evaluate(Relation(Text(""), UNDEFINED, RelationOp.OR), ctx) == ""

    def test_or_falls_back_to_right(self, ctx: EvalContext) -> None:
        assert evaluate(Relation(MISSING, Text("y"), RelationOp.OR), ctx) == "y"
        assert evaluate(Relation(MISSING, MISSING, RelationOp.OR), ctx) is None


class TestComparison:
    def test_equal_strings(self, ctx: EvalContext) -> None:
        expr = Comparison(Var("a"), Text("x"), ComparisonOp.EQ)
        assert evaluate(expr, ctx) == ""

    def test_unequal_strings(self, ctx: EvalContext) -> None:
        assert evaluate(Comparison(Var("a"), Var("b"), ComparisonOp.EQ), ctx) is None
        assert evaluate(Comparison(Var("a"), Var("b"), ComparisonOp.NE), ctx) == ""

    def test_both_absent_are_equal(self, ctx: EvalContext) -> None:
        other = Var("other", is_optional=True)
        assert evaluate(Comparison(MISSING, other, ComparisonOp.EQ), ctx) == ""
        assert evaluate(Comparison(MISSING, other, ComparisonOp.NE), ctx) is None

    def test_absent_differs_from_empty_string(self, ctx: EvalContext) -> None:
        assert evaluate(Comparison(MISSING, Text(""), ComparisonOp.EQ), ctx) is None
        assert evaluate(Comparison(MISSING, Var("empty"), ComparisonOp.NE), ctx) == ""

    def test_both_sides_always_evaluated(self, ctx: EvalContext) -> None:
        with pytest.raises(UndefinedVariableError):
            evaluate(Comparison(MISSING, UNDEFINED, ComparisonOp.NE), ctx)


class TestConcat:
    def test_space_joined(self, ctx: EvalContext) -> None:
        expr = Concat((Var("a"), MISSING, Var("b")), add_space=True)
        assert evaluate(expr, ctx) == "x y"

    def test_plain_joined(self, ctx: EvalContext) -> None:
        expr = Concat((Var("a"), MISSING, Var("b")), add_space=False)
        assert evaluate(expr, ctx) == "xy"

    def test_empty_strings_are_kept(self, ctx: EvalContext) -> None:
        expr = Concat((Var("empty"), Var("b")), add_space=True)
        assert evaluate(expr, ctx) == " y"

    def test_all_absent_is_present_empty(self, ctx: EvalContext) -> None:
        assert evaluate(Concat((MISSING, MISSING), add_space=True), ctx) == ""
        assert evaluate(Concat(()), ctx) == ""

    def test_all_parts_evaluated(self, ctx: EvalContext) -> None:
        with pytest.raises(UndefinedVariableError):
            evaluate(Concat((MISSING, UNDEFINED)), ctx)

    def test_parsed_juxtaposition_and_plus(self, ctx: EvalContext) -> None:
        juxtaposed = parse_expression("$a$b")
        added = parse_expression("$a + $b")
        assert juxtaposed is not None and added is not None
        assert evaluate(juxtaposed, ctx) == "x y"
        assert evaluate(added, ctx) == "xy"


class TestEvalContext:
    def test_vars_table_is_required(self) -> None:
        with pytest.raises(TypeError):
            EvalContext()  # type: ignore[call-arg]

    def test_macro_table_defaults_to_none(self) -> None:
        ctx = EvalContext(vars={})
        assert dict(ctx.vars) == {}
        assert ctx.macro_vars is None
        assert ctx.in_macro is False

    def test_in_macro_with_empty_table(self) -> None:
        assert EvalContext(vars={}, macro_vars={}).in_macro is True

    def test_tables_are_read_only(self) -> None:
        ctx = EvalContext(vars={"a": "x"}, macro_vars={"n": "v"})
        with pytest.raises(TypeError):
            ctx.vars["a"] = "z"  # type: ignore[index]
        with pytest.raises(TypeError):
            ctx.macro_vars["n"] = "w"  # type: ignore[index]

    def test_caller_changes_not_observed(self) -> None:
        source = {"a": "x"}
        ctx = EvalContext(vars=source)
        source["a"] = "changed"
        assert evaluate(Var("a"), ctx) == "x"

    def test_frozen(self) -> None:
        ctx = EvalContext(vars={})
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.macro_vars = {}  # type: ignore[misc]


class TestExpressionEvaluator:
    def test_evaluate(self, ctx: EvalContext) -> None:
        evaluator = ExpressionEvaluator(ctx)
        assert evaluator.context is ctx
        assert evaluator.evaluate(Var("a")) == "x"

    def test_evaluate_source(self) -> None:
        evaluator = ExpressionEvaluator(EvalContext(vars={"width": "10px"}))
        assert evaluator.evaluate_source("width: + $width") == "width:10px"

    def test_evaluate_source_syntax_error(self, ctx: EvalContext) -> None:
        with pytest.raises(ExpressionSyntaxError):
            ExpressionEvaluator(ctx).evaluate_source("(a")

    def test_evaluation_errors_share_base(self, ctx: EvalContext) -> None:
        with pytest.raises(ExpressionEvaluationError):
            ExpressionEvaluator(ctx).evaluate_source("$nope")
