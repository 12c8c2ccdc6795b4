"""Attribute expression parser.

Turns the text of an attribute directive (for example the body of
``+class="$base !$?disabled"``) into an immutable expression tree.

Expression syntax, lowest precedence first:
- ``a and b`` / ``a or b`` - short-circuiting relation, chainable
- ``a == b`` / ``a != b`` - comparison, at most one per level
- ``a + b`` - concatenation without separator
- ``a b`` - juxtaposition, concatenated with a single space
- ``!a`` - negation
- ``(expr)``, ``$name``, ``$?name``, ``$@name``, ``$@?name``,
  ``'quoted'``, ``"quoted"``, ``bareword``

Implementation:
The grammar lives in grammar.lark and is compiled once at import with Lark's
LALR parser. Parsing holds no shared mutable state, so it is safe to call
from several threads at once.
"""

from __future__ import annotations

import re
from pathlib import Path

from lark import Lark, Token, Transformer, UnexpectedInput, UnexpectedToken

from protic.expressions.errors import ExpressionErrorInfo, ExpressionSyntaxError
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
)

__all__ = [
    "parse_expression",
    "parse_expression_strict",
    "validate_expression",
]

_GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"
_GRAMMAR = _GRAMMAR_PATH.read_text()

_parser = Lark(
    _GRAMMAR,
    parser="lalr",
    start="start",
)

_ESCAPE_PATTERN = re.compile(r"\\(.)", re.DOTALL)


class _ExpressionTransformer(Transformer[Token, AnyExpression]):
    """Fold the Lark parse tree into expression nodes."""

    def rel_expr(self, items: list[object]) -> Relation:
        """Fold ``a and b or c`` to the left: ``(a and b) or c``."""
        result = items[0]
        for op, right in zip(items[1::2], items[2::2]):
            result = Relation(left=result, right=right, op=RelationOp(str(op)))
        return result

    def cmp_expr(self, items: list[object]) -> Comparison:
        left, op, right = items
        return Comparison(left=left, right=right, op=ComparisonOp(str(op)))

    def add_expr(self, items: list[AnyExpression]) -> Concat:
        return Concat(tuple(items), add_space=False)

    def concat_expr(self, items: list[AnyExpression]) -> Concat:
        return Concat(tuple(items), add_space=True)

    def negation(self, items: list[AnyExpression]) -> Negation:
        return Negation(items[0])

    def variable(self, items: list[Token]) -> Var:
        # Token text is '$', then optional '@', then optional '?', then the name.
        body = str(items[0])[1:]
        is_macro_var = body.startswith("@")
        body = body.removeprefix("@")
        is_optional = body.startswith("?")
        return Var(
            body.removeprefix("?"),
            is_macro_var=is_macro_var,
            is_optional=is_optional,
        )

    def string(self, items: list[Token]) -> Text:
        body = str(items[0])[1:-1]
        return Text(_ESCAPE_PATTERN.sub(lambda m: m.group(1), body))

    def bareword(self, items: list[Token]) -> Text:
        return Text(str(items[0]))


_transformer = _ExpressionTransformer()


def _describe_failure(error: UnexpectedInput, source: str) -> tuple[str, int]:
    """Return a short reason and 0-based position for a Lark failure."""
    position = getattr(error, "pos_in_stream", None)
    if isinstance(error, UnexpectedToken):
        if error.token.type == "$END":
            return "Unexpected end of expression", len(source)
        return f"Unexpected token {error.token.value!r}", error.token.start_pos or 0
    if position is None or position < 0 or position >= len(source):
        return "Unexpected end of expression", len(source)
    return f"Unexpected character {source[position]!r}", position


def parse_expression_strict(source: str) -> AnyExpression:
    """Parse an attribute expression, raising on invalid syntax.

    Args:
        source: Raw attribute-value text.

    Returns:
        The root node of the expression tree.

    Raises:
        ExpressionSyntaxError: If the source does not match the grammar. The
            error carries the character position where parsing stopped.

    Examples:
        >>> parse_expression_strict("'it\\\\'s'")
        Text(value="it's")
    """
    try:
        tree = _parser.parse(source)
    except UnexpectedInput as e:
        reason, position = _describe_failure(e, source)
        raise ExpressionSyntaxError(reason, expression=source, position=position) from e
    return _transformer.transform(tree)


def parse_expression(source: str) -> AnyExpression | None:
    """Parse an attribute expression.

    Args:
        source: Raw attribute-value text.

    Returns:
        The root node of the expression tree, or None if the source does not
        parse. No partial trees are returned.

    Examples:
        >>> parse_expression("a and b")
        Relation(left=Text(value='a'), right=Text(value='b'), op=<RelationOp.AND: 'and'>)
        >>> parse_expression("and") is None
        True
    """
    try:
        return parse_expression_strict(source)
    except ExpressionSyntaxError:
        return None


def validate_expression(source: str) -> ExpressionErrorInfo | None:
    """Check an attribute expression without keeping the tree.

    Args:
        source: Raw attribute-value text.

    Returns:
        None if the source parses, otherwise the failure details.
    """
    try:
        parse_expression_strict(source)
    except ExpressionSyntaxError as e:
        return ExpressionErrorInfo(
            expression=source,
            message=e.reason,
            position=e.position,
        )
    return None
