"""Entry point for template compilers embedding attribute expressions.

A compiler parses each attribute body once, reports ``diagnose()`` output as
its own "invalid attribute" message, and renders the tree with the variable
tables of the template or macro being expanded. ``None`` from ``render`` or
``evaluate`` means the attribute is omitted.
"""

from __future__ import annotations

from functools import lru_cache

from protic.config import ExpressionConfig
from protic.expressions.errors import (
    ExpressionErrorInfo,
    ExpressionEvaluationError,
)
from protic.expressions.evaluator import EvalContext, evaluate
from protic.expressions.nodes import AnyExpression
from protic.expressions.parser import (
    parse_expression,
    parse_expression_strict,
    validate_expression,
)
from protic.logging import get_logger

__all__ = ["ExpressionEngine"]

logger = get_logger(__name__)


class ExpressionEngine:
    """Parses, diagnoses and evaluates attribute expressions.

    Parsed trees are memoized per source string. Trees are immutable, so a
    cached tree can be shared between templates and threads.

    Attributes:
        config: Expression settings in effect for this engine.

    Example:
        ```python
        engine = ExpressionEngine(load_config().expressions)
        ctx = EvalContext(vars={"width": "10px"})
        engine.render("width: + $width", ctx)  # "width:10px"
        ```
    """

    def __init__(self, config: ExpressionConfig | None = None) -> None:
        self.config = config or ExpressionConfig()
        if self.config.cache_size > 0:
            self._parse = lru_cache(maxsize=self.config.cache_size)(
                parse_expression
            )
        else:
            self._parse = parse_expression
        logger.debug("expression_cache_configured", cache_size=self.config.cache_size)

    def parse(self, source: str) -> AnyExpression | None:
        """Parse attribute-expression text, returning None on invalid syntax."""
        expr = self._parse(source)
        if expr is None:
            logger.debug("expression_parse_failed", source=source)
        return expr

    def diagnose(self, source: str) -> ExpressionErrorInfo | None:
        """Describe why ``source`` does not parse, or None if it does.

        The position is reported as 0 when ``report_positions`` is disabled.
        """
        if self._parse(source) is not None:
            return None
        info = validate_expression(source)
        if info is not None and not self.config.report_positions:
            info = ExpressionErrorInfo(expression=info.expression, message=info.message)
        return info

    def evaluate(self, expr: AnyExpression, ctx: EvalContext) -> str | None:
        """Evaluate a parsed expression.

        Raises:
            ExpressionEvaluationError: Propagated unchanged from the evaluator.
        """
        try:
            return evaluate(expr, ctx)
        except ExpressionEvaluationError as e:
            logger.debug(
                "expression_evaluation_failed",
                variable=e.variable,
                error=e.message,
            )
            raise

    def render(self, source: str, ctx: EvalContext) -> str | None:
        """Parse and evaluate attribute-expression text.

        Args:
            source: Raw attribute-value text.
            ctx: Variable tables of the template or macro being expanded.

        Returns:
            The attribute value, or None if the attribute should be omitted.

        Raises:
            ExpressionSyntaxError: If the source does not parse.
            ExpressionEvaluationError: If evaluation fails.
        """
        expr = self._parse(source)
        if expr is None:
            # Re-parse uncached to raise with position details.
            expr = parse_expression_strict(source)
        return self.evaluate(expr, ctx)

    def cache_info(self) -> tuple[int, int, int | None, int] | None:
        """Hit/miss statistics of the parse cache, or None when disabled."""
        if self.config.cache_size == 0:
            return None
        return self._parse.cache_info()

    def clear_cache(self) -> None:
        if self.config.cache_size > 0:
            self._parse.cache_clear()
