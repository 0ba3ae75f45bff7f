"""Error family raised by plainsql.

Every database-level failure surfaces as exactly one DatabaseError subclass
carrying the driver's numeric code, the driver's message, and a context
string: a fixed step name ("connect", "kill", "close") or the unresolved
query template.
"""

from typing import Tuple

from sqlalchemy.exc import DBAPIError

CONTEXT_CONNECT = "connect"
CONTEXT_KILL = "kill"
CONTEXT_CLOSE = "close"


class DatabaseError(Exception):
    """Base error: driver code, driver message, context."""

    def __init__(self, code: int, message: str, context: str):
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"<{code}=={message}> [[{context}]]")

    @classmethod
    def from_exception(cls, exc: BaseException, context: str) -> "DatabaseError":
        """Build an error of this kind from a driver (or SQLAlchemy) exception."""
        code, message = driver_error_details(exc)
        return cls(code, message, context)


class ConnectionError(DatabaseError):
    """The connection could not be established."""


class CleanupError(DatabaseError):
    """Killing the server thread or closing the handle failed."""


class QueryError(DatabaseError):
    """A query failed to execute. ``context`` is the unresolved template."""


class EncodingError(DatabaseError):
    """Placeholders and arguments do not line up."""

    def __init__(self, message: str, context: str):
        super().__init__(0, message, context)


def driver_error_details(exc: BaseException) -> Tuple[int, str]:
    """Extract (code, message) from a PyMySQL error, possibly SQLAlchemy-wrapped.

    PyMySQL errors carry ``args == (code, message)``. Anything else maps to
    code 0 with its text as the message.
    """
    orig = exc.orig if isinstance(exc, DBAPIError) and exc.orig is not None else exc
    args = getattr(orig, "args", ())
    if len(args) >= 2 and isinstance(args[0], int):
        return args[0], str(args[1])
    if len(args) == 1 and isinstance(args[0], int):
        return args[0], ""
    return 0, str(orig)


__all__ = [
    "CONTEXT_CONNECT",
    "CONTEXT_KILL",
    "CONTEXT_CLOSE",
    "DatabaseError",
    "ConnectionError",
    "CleanupError",
    "QueryError",
    "EncodingError",
    "driver_error_details",
]
