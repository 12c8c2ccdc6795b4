from __future__ import annotations


class ProticError(Exception):
    """Base exception class for all Protic-specific errors.

    This is the root of the Protic exception hierarchy. Catching it at a
    compiler or tooling boundary handles every library failure while letting
    system exceptions propagate naturally.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            engine.render(source, ctx)
        except ProticError as e:
            logger.error("attribute_failed", error=e.message)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the ProticError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
