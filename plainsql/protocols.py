"""Protocol definitions and shared types.

These are typing.Protocol classes for static type checking plus the small
value types that cross the Session boundary.
"""

from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable


# =============================================================================
# LOGGING
# =============================================================================

@runtime_checkable
class LoggerProtocol(Protocol):
    """Structured logging interface."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def bind(self, **kwargs: Any) -> "LoggerProtocol": ...


# =============================================================================
# ROWS
# =============================================================================

# Column name -> driver value (None, int, float, Decimal, str, bytes, date/time)
Row = Dict[str, Any]


class RowAction(Enum):
    """Continuation signal returned by a row callback.

    Only STOP ends the iteration. Returning None (or anything else) keeps
    going, so a row whose value happens to be falsy never stops the loop.
    """

    CONTINUE = "continue"
    STOP = "stop"


RowCallback = Callable[[Row], Optional[RowAction]]


__all__ = [
    "LoggerProtocol",
    "Row",
    "RowAction",
    "RowCallback",
]
