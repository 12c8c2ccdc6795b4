"""Abstract syntax tree for attribute expressions.

The tree is a closed set of six immutable node dataclasses built once by the
parser. Nodes compare by value, so two parses of the same source are equal
and can be used as dictionary keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "RelationOp",
    "ComparisonOp",
    "Relation",
    "Comparison",
    "Negation",
    "Concat",
    "Var",
    "Text",
    "AnyExpression",
    "is_truthy",
]


class RelationOp(str, Enum):
    """Short-circuiting combinator."""

    AND = "and"
    OR = "or"


class ComparisonOp(str, Enum):
    """String (in)equality test."""

    EQ = "=="
    NE = "!="


@dataclass(frozen=True, slots=True)
class Relation:
    """``left and right`` / ``left or right``.

    Attributes:
        left: Always evaluated.
        right: Evaluated only when ``left`` does not decide the result.
        op: The combinator.
    """

    left: AnyExpression
    right: AnyExpression
    op: RelationOp


@dataclass(frozen=True, slots=True)
class Comparison:
    """``left == right`` / ``left != right``; both sides are always evaluated."""

    left: AnyExpression
    right: AnyExpression
    op: ComparisonOp


@dataclass(frozen=True, slots=True)
class Negation:
    """``!inner``: inverts presence, discarding the inner value."""

    inner: AnyExpression


@dataclass(frozen=True, slots=True)
class Concat:
    """Concatenation of the present results of ``parts``.

    Attributes:
        parts: Terms in source order.
        add_space: True for juxtaposed terms (``$a $b``), False for explicit
            ``+`` concatenation.
    """

    parts: tuple[AnyExpression, ...]
    add_space: bool = False


@dataclass(frozen=True, slots=True)
class Var:
    """Variable reference: ``$name``, ``$?name``, ``$@name`` or ``$@?name``.

    Attributes:
        name: Identifier without sigils.
        is_macro_var: Resolve from the macro table instead of the template vars.
        is_optional: Evaluate to absence instead of failing when undefined.

    Examples:
        >>> Var("width", is_optional=True).prefixed
        '$?width'
        >>> Var("n", is_macro_var=True).prefixed
        '$@n'
    """

    name: str
    is_macro_var: bool = False
    is_optional: bool = False

    @property
    def prefixed(self) -> str:
        """The reference as written in source, sigils included."""
        prefix = "$"
        if self.is_macro_var:
            prefix += "@"
        if self.is_optional:
            prefix += "?"
        return prefix + self.name


@dataclass(frozen=True, slots=True)
class Text:
    """Literal string, from a quoted string or a bareword."""

    value: str


AnyExpression = Relation | Comparison | Negation | Concat | Var | Text


def is_truthy(value: str | None) -> bool:
    """Return True for any present value, including the empty string."""
    return value is not None
