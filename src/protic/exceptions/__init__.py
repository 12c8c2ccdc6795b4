"""Protic exception hierarchy.

All exceptions can be imported from this package:
    from protic.exceptions import ProticError, ConfigError
"""

from __future__ import annotations

from protic.exceptions.base import ProticError
from protic.exceptions.config import ConfigError

__all__ = [
    "ProticError",
    "ConfigError",
]
