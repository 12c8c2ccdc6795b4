"""Expression-specific error types for Protic attribute expressions.

Parse failures in the minimal API are reported as ``None`` and never reach
these classes; ``ExpressionSyntaxError`` is only raised by the strict parser.
Evaluation failures always propagate as ``ExpressionEvaluationError``
subclasses.
"""

from __future__ import annotations

from dataclasses import dataclass

from protic.exceptions import ProticError


class ExpressionError(ProticError):
    """Base exception for all expression-related errors.

    Attributes:
        message: Human-readable error message.
        expression: The expression source that failed (if known).
    """

    def __init__(
        self,
        message: str,
        expression: str | None = None,
    ) -> None:
        self.expression = expression
        super().__init__(message)


class ExpressionSyntaxError(ExpressionError):
    """Exception raised when an attribute expression cannot be parsed.

    Attributes:
        message: Formatted message, including a caret line when the position
            is known.
        expression: The source that failed to parse.
        position: 0-based character offset where parsing stopped.
        reason: The unformatted description of the failure.
    """

    def __init__(
        self,
        message: str,
        expression: str,
        position: int = 0,
    ) -> None:
        """Initialize the ExpressionSyntaxError.

        Args:
            message: Short description of the failure.
            expression: The source that failed to parse.
            position: Character position where the error occurred.
        """
        self.position = position
        self.reason = message
        if position > 0 and expression:
            error_line = f"{expression}\n{' ' * position}^"
            full_message = f"{message} at position {position}:\n{error_line}"
        else:
            full_message = f"{message}: {expression!r}"
        super().__init__(full_message, expression=expression)


class ExpressionEvaluationError(ExpressionError):
    """Exception raised when a parsed expression fails during evaluation.

    Attributes:
        name: Bare identifier of the offending variable.
        variable: Fully-qualified reference including its sigils
            (``$``, ``$@``, ``?``).
    """

    def __init__(self, message: str, name: str, variable: str) -> None:
        self.name = name
        self.variable = variable
        super().__init__(message, expression=variable)


class UndefinedVariableError(ExpressionEvaluationError):
    """A required variable reference has no entry in the active table."""

    def __init__(self, name: str, variable: str) -> None:
        super().__init__(f"undefined variable {variable}", name, variable)


class MacroVarOutsideMacroError(ExpressionEvaluationError):
    """A macro variable was referenced while no macro table is available."""

    def __init__(self, name: str, variable: str) -> None:
        super().__init__(
            f"macro var {variable} requested in non-macro", name, variable
        )


@dataclass(frozen=True, slots=True)
class ExpressionErrorInfo:
    """Diagnostic for an expression that did not parse.

    Collaborating compilers turn this into their own "invalid attribute"
    message; it is immutable and safe to cache.

    Attributes:
        expression: The source that failed.
        message: Human-readable error message.
        position: Character position in the source (0 if not reported).
    """

    expression: str
    message: str
    position: int = 0
