"""Synchronous MySQL session with textual placeholder substitution."""

from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence

from pymysql.constants import CLIENT, SERVER_STATUS
from pymysql.err import MySQLError
from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Connection, CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from plainsql import encoding
from plainsql.errors import (
    CONTEXT_CLOSE,
    CONTEXT_CONNECT,
    CONTEXT_KILL,
    CleanupError,
    ConnectionError,
    QueryError,
    driver_error_details,
)
from plainsql.logging import get_component_logger
from plainsql.protocols import LoggerProtocol, Row, RowAction, RowCallback
from plainsql.settings import DatabaseSettings, get_settings

# Server replies when a connection kills its own thread (MySQL, MariaDB)
ER_QUERY_INTERRUPTED = 1317
ER_CONNECTION_KILLED = 1927
SELF_KILL_REPLIES = (ER_QUERY_INTERRUPTED, ER_CONNECTION_KILLED)


def _clear_found_rows(dialect, conn_rec, cargs, cparams) -> None:
    """Report changed rows, not matched rows, as the affected-row count.

    The SQLAlchemy MySQL dialects always request CLIENT.FOUND_ROWS.
    """
    cparams["client_flag"] = cparams.get("client_flag", 0) & ~CLIENT.FOUND_ROWS


def create_session_engine(
    host: str,
    username: str,
    password: str,
    database: str,
    *,
    port: int = 3306,
    charset: str = "utf8mb4",
) -> Engine:
    """Build an unpooled, autocommitting mysql+pymysql engine.

    Each Session owns one engine and checks out exactly one connection from
    it, so NullPool closes the DBAPI connection when the Session closes.
    """
    engine = create_engine(
        URL.create(
            "mysql+pymysql",
            username=username,
            password=password,
            host=host,
            port=port,
            database=database,
            query={"charset": charset},
        ),
        poolclass=NullPool,
        isolation_level="AUTOCOMMIT",
    )
    event.listen(engine, "do_connect", _clear_found_rows)
    return engine


class Session:
    """One live MySQL connection with convenience query helpers.

    Usage:
        with Session("localhost", "app", "secret", "shop") as db:
            n = db.get_single_value("select count(*) from Users where ID > ?", [12])
            rows = db.get_all_rows("select * from Users where ID in (?)", [[1, 2, 3]])
            db.execute("update Users set Active=? where ID=?", [1, 7])

    Not safe for concurrent use; callers sharing a Session must serialize.
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        database: str,
        *,
        port: int = 3306,
        charset: str = "utf8mb4",
        logger: Optional[LoggerProtocol] = None,
        log_resolved_queries: bool = False,
    ):
        """Connect to the database.

        Args:
            host: Server host name or address
            username: Account name
            password: Account password
            database: Default schema for the session
            port: Server port
            charset: Connection character set
            logger: Logger for DI (a component logger is created if not provided)
            log_resolved_queries: Also log the resolved query text at debug
                level. Resolved text contains interpolated values.

        Raises:
            ConnectionError: The driver could not connect
        """
        self._logger = get_component_logger("Session", logger).bind(
            host=host, database=database
        )
        self._log_resolved_queries = log_resolved_queries

        self._engine = create_session_engine(
            host, username, password, database, port=port, charset=charset
        )

        try:
            self._conn: Connection = self._engine.connect()
        except SQLAlchemyError as e:
            self._engine.dispose()
            error = ConnectionError.from_exception(e, CONTEXT_CONNECT)
            self._logger.error(
                "session_connect_failed", code=error.code, error=error.message
            )
            raise error from e

        self._closed = False
        self._logger.info("session_connected", thread_id=self.thread_id)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[DatabaseSettings] = None,
        *,
        logger: Optional[LoggerProtocol] = None,
    ) -> "Session":
        """Connect using DatabaseSettings (the global settings when omitted)."""
        settings = settings or get_settings()
        return cls(
            settings.host,
            settings.username,
            settings.password.get_secret_value(),
            settings.database,
            port=settings.port,
            charset=settings.charset,
            logger=logger,
            log_resolved_queries=settings.log_resolved_queries,
        )

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._closed:
            self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def thread_id(self) -> int:
        """Server-side thread id of this connection."""
        self._require_open("thread_id")
        return self._dbapi_connection().thread_id()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def close(self) -> None:
        """Kill the server thread, then close the client handle.

        The client handle is closed even when the kill fails. If both steps
        fail, the close error is raised and the kill error stays in its
        exception chain.

        Raises:
            CleanupError: A step failed, or the session was already closed
        """
        if self._closed:
            raise CleanupError(0, "session already closed", CONTEXT_CLOSE)
        self._closed = True

        try:
            self._kill()
        finally:
            self._release()

        self._logger.info("session_closed")

    def _kill(self) -> None:
        try:
            dbapi_conn = self._dbapi_connection()
            dbapi_conn.kill(dbapi_conn.thread_id())
        except (SQLAlchemyError, MySQLError) as e:
            if driver_error_details(e)[0] in SELF_KILL_REPLIES:
                return
            raise self._cleanup_error(e, CONTEXT_KILL) from e

    def _release(self) -> None:
        try:
            self._conn.close()
            self._engine.dispose()
        except (SQLAlchemyError, MySQLError) as e:
            raise self._cleanup_error(e, CONTEXT_CLOSE) from e

    def _cleanup_error(self, exc: BaseException, context: str) -> CleanupError:
        error = CleanupError.from_exception(exc, context)
        self._logger.error(
            f"session_{context}_failed", code=error.code, error=error.message
        )
        return error

    # =========================================================================
    # ENCODING
    # =========================================================================

    def encode(self, template: str, args: Optional[Sequence[Any]] = None) -> str:
        """Resolve ``?`` placeholders using this connection's escaping rules."""
        self._require_open(template)
        return encoding.encode(template, args, self._escape)

    def _escape(self, value: str) -> str:
        dbapi_conn = self._dbapi_connection()
        if dbapi_conn.server_status & SERVER_STATUS.SERVER_STATUS_NO_BACKSLASH_ESCAPES:
            # Backslash is literal in this mode; only the quote needs doubling
            return value.replace('"', '""')
        return dbapi_conn.escape_string(value)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_single_value(
        self, template: str, args: Optional[Sequence[Any]] = None
    ) -> Any:
        """Return the first column of the first row, or None if no row matched.

        Example:
            db.get_single_value("select count(*) from Users where ID > ?", [12])
        """
        with self._query_errors(template):
            return self._run(template, args).scalar()

    def get_row(
        self, template: str, args: Optional[Sequence[Any]] = None
    ) -> Optional[Row]:
        """Return the first row as a dict, or None if no row matched."""
        with self._query_errors(template):
            row = self._run(template, args).mappings().first()
        return dict(row) if row is not None else None

    def get_all_rows(
        self, template: str, args: Optional[Sequence[Any]] = None
    ) -> List[Row]:
        """Return every row as a dict, in driver order. Empty list if none matched."""
        with self._query_errors(template):
            rows = self._run(template, args).mappings().all()
        return [dict(row) for row in rows]

    def get_rows_with_callback(
        self,
        template: str,
        args: Optional[Sequence[Any]],
        callback: RowCallback,
    ) -> int:
        """Stream rows to ``callback`` one at a time.

        Rows are fetched through a server-side cursor. Iteration stops as soon
        as the callback returns RowAction.STOP.

        Returns:
            Number of rows handed to the callback
        """
        delivered = 0
        with self._query_errors(template):
            # Buffer one row so rows after a STOP are never fetched
            result = self._run(
                template, args, stream_results=True, max_row_buffer=1
            )
            try:
                for row in result.mappings():
                    delivered += 1
                    if callback(dict(row)) is RowAction.STOP:
                        break
            finally:
                result.close()
        return delivered

    def execute(
        self,
        template: str,
        args: Optional[Sequence[Any]] = None,
        return_affected_rows: bool = False,
    ) -> Optional[int]:
        """Run a statement without a result set (insert, update, delete, DDL).

        Returns:
            Rows changed by the statement when ``return_affected_rows`` is set,
            otherwise None
        """
        with self._query_errors(template):
            result = self._run(template, args)
            affected = result.rowcount
            result.close()
        return affected if return_affected_rows else None

    def affected_rows(self) -> int:
        """Rows changed by the most recent statement on this session."""
        self._require_open("affected_rows")
        return self._dbapi_connection().affected_rows()

    def last_insert_id(self) -> int:
        """AUTO_INCREMENT id generated by the most recent insert on this session."""
        self._require_open("last_insert_id")
        return self._dbapi_connection().insert_id()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _dbapi_connection(self) -> Any:
        return self._conn.connection.dbapi_connection

    def _require_open(self, context: str) -> None:
        if self._closed:
            raise QueryError(0, "session is closed", context)

    def _run(
        self,
        template: str,
        args: Optional[Sequence[Any]],
        **execution_options: Any,
    ) -> CursorResult:
        sql = self.encode(template, args)
        if self._log_resolved_queries:
            self._logger.debug("query_resolved", query=template, resolved=sql)

        # The driver must receive the resolved text verbatim, no %-formatting
        result = self._conn.exec_driver_sql(
            sql,
            execution_options={"no_parameters": True, **execution_options},
        )
        self._logger.debug("query_executed", query=template)
        return result

    @contextmanager
    def _query_errors(self, template: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            error = QueryError.from_exception(e, template)
            self._logger.error(
                "query_failed", query=template, code=error.code, error=error.message
            )
            raise error from e


__all__ = [
    "Session",
    "create_session_engine",
    "ER_QUERY_INTERRUPTED",
    "ER_CONNECTION_KILLED",
]
