"""plainsql - convenience queries over one MySQL connection.

Usage:
    from plainsql import Session, RowAction

    with Session("localhost", "app", "secret", "shop") as db:
        count = db.get_single_value("select count(*) from Users where ID > ?", [12])
        user = db.get_row("select * from Users where ID=?", [12])
        db.execute("update Users set Active=? where ID in (?)", [1, [2, 5, 9]])
"""

from plainsql.encoding import encode
from plainsql.errors import (
    CleanupError,
    ConnectionError,
    DatabaseError,
    EncodingError,
    QueryError,
)
from plainsql.protocols import Row, RowAction, RowCallback
from plainsql.session import Session
from plainsql.settings import DatabaseSettings, get_settings

__all__ = [
    "Session",
    "encode",
    "DatabaseError",
    "ConnectionError",
    "CleanupError",
    "QueryError",
    "EncodingError",
    "Row",
    "RowAction",
    "RowCallback",
    "DatabaseSettings",
    "get_settings",
]
