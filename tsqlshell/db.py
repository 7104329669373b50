"""
tsqlshell/db.py

Database collaborator for the tsqlshell client.

Responsibilities:
- Provide a small connection interface around a pooled SQLAlchemy engine:
    - Database.connect(params) / Database.from_url(url)
    - db.connection() -> sqlalchemy Connection (autocommit)
    - db.use(name)
    - db.close()
- Health-check the server before the session starts
- Fetch server information for the welcome banner
- Keep the current database (changed with USE) applied to every pooled
  connection

Statements always run in autocommit mode; the client does not manage
transactions.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from .config import (
    MAX_OVERFLOW,
    POOL_RECYCLE,
    POOL_SIZE,
    QUERY_TIMEOUT,
    ConnectionParams,
    driver_connect_args,
)
from .errors import DatabaseConnectionError, ExecutionError

logger = logging.getLogger(__name__)

# SQLite VM instructions between deadline checks.
SQLITE_PROGRESS_STEPS = 1000

SERVER_INFO_QUERIES = {
    "version": "SELECT @@VERSION",
    "server_name": "SELECT @@SERVERNAME",
    "product_level": "SELECT SERVERPROPERTY('ProductLevel')",
    "edition": "SELECT SERVERPROPERTY('Edition')",
}


@dataclass
class ServerInfo:
    version: str = ""
    product_level: str = ""
    edition: str = ""
    server_name: str = ""


def quote_name(name: str) -> str:
    """Bracket-quote a SQL Server identifier."""
    return "[" + name.replace("]", "]]") + "]"


def engine_options(url: URL) -> dict[str, Any]:
    """
    Pool options for create_engine().

    SQLite uses its own single-connection pools which reject the QueuePool
    sizing arguments.
    """
    options: dict[str, Any] = {"isolation_level": "AUTOCOMMIT"}
    if url.get_backend_name() != "sqlite":
        options.update(
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_recycle=POOL_RECYCLE,
        )
    return options


def apply_statement_timeout(engine: Engine, query_timeout: float) -> None:
    """
    Bound every statement for drivers that take the deadline per connection.

    pyodbc exposes a query timeout on the connection object. SQLite has none,
    so a progress handler aborts the running statement (and any fetch of its
    rows) once the deadline taken at submission has passed. Other drivers get
    their deadline through connect arguments (config.driver_connect_args).
    """
    driver = engine.dialect.driver

    if driver == "pyodbc":
        @event.listens_for(engine, "connect")
        def _set_query_timeout(dbapi_connection, connection_record):
            dbapi_connection.timeout = max(1, math.ceil(query_timeout))
        return

    if driver != "pysqlite":
        return

    @event.listens_for(engine, "connect")
    def _install_progress_handler(dbapi_connection, connection_record):
        info = connection_record.info

        def expired() -> int:
            deadline = info.get("deadline")
            return 1 if deadline is not None and time.monotonic() > deadline else 0

        dbapi_connection.set_progress_handler(expired, SQLITE_PROGRESS_STEPS)

    @event.listens_for(engine, "before_cursor_execute")
    def _start_deadline(conn, cursor, statement, parameters, context, executemany):
        conn.info["deadline"] = time.monotonic() + query_timeout

    @event.listens_for(engine, "checkin")
    def _clear_deadline(dbapi_connection, connection_record):
        connection_record.info.pop("deadline", None)


@dataclass
class Database:
    """
    Pooled connection to one database server.

    Attributes:
        engine: SQLAlchemy engine owning the connection pool.
        target: Human readable server description (host:port).
        database: Current database name; starts as the URL's database.
        server_info: Filled in by fetch_server_info().
    """
    engine: Engine
    target: str
    database: str = ""
    server_info: ServerInfo = field(default_factory=ServerInfo)

    def __post_init__(self) -> None:
        self._initial_database = self.database
        event.listen(self.engine, "checkout", self._apply_database)

    @classmethod
    def connect(cls, params: ConnectionParams) -> "Database":
        """
        Open a pooled connection to a server and health-check it.

        Args:
            params: Connection parameters.

        Returns:
            Database instance, with server_info fetched.

        Raises:
            DatabaseConnectionError: if the server cannot be reached.
        """
        db = cls.from_url(params.url(), query_timeout=params.query_timeout, target=params.describe())
        db.fetch_server_info()
        return db

    @classmethod
    def from_url(
        cls,
        url: str | URL,
        query_timeout: float = QUERY_TIMEOUT,
        target: str | None = None,
    ) -> "Database":
        """
        Open a pooled connection from a SQLAlchemy URL and health-check it.

        Args:
            url: SQLAlchemy URL (string or URL).
            query_timeout: Deadline for every statement, in seconds.
            target: Description used in messages; defaults to the URL with
                the password hidden.

        Raises:
            DatabaseConnectionError: if the URL is malformed, the driver cannot
                bound statements, the engine cannot be created or the health
                check fails.
        """
        label = target or "database URL"
        try:
            url = make_url(url)
            label = target or url.render_as_string(hide_password=True)
            connect_args = driver_connect_args(url, query_timeout)
            engine = create_engine(url, connect_args=connect_args, **engine_options(url))
        except (SQLAlchemyError, ImportError, ValueError) as e:
            raise DatabaseConnectionError(label, str(e)) from e
        apply_statement_timeout(engine, query_timeout)

        try:
            with engine.connect() as conn:
                conn.exec_driver_sql("SELECT 1")
        except SQLAlchemyError as e:
            engine.dispose()
            raise DatabaseConnectionError(label, str(getattr(e, "orig", None) or e)) from e

        logger.debug("Connected to %s", label)
        return cls(engine=engine, target=label, database=url.database or "")

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def connection(self) -> Connection:
        """Check out a connection from the pool."""
        return self.engine.connect()

    def fetch_server_info(self) -> ServerInfo:
        """
        Read version/edition details for the banner.

        Only SQL Server exposes these; other dialects keep an empty ServerInfo.
        Individual lookup failures are logged and leave that field empty.
        """
        if self.dialect != "mssql":
            return self.server_info

        with self.connection() as conn:
            for attr, sql in SERVER_INFO_QUERIES.items():
                try:
                    value = conn.exec_driver_sql(sql).scalar()
                except SQLAlchemyError as e:
                    logger.warning("Could not read server %s: %s", attr, e)
                    continue
                setattr(self.server_info, attr, "" if value is None else str(value))
        return self.server_info

    def use(self, name: str) -> None:
        """
        Switch the current database.

        Args:
            name: Database name.

        Raises:
            ExecutionError: if the server rejects the switch.
        """
        try:
            with self.connection() as conn:
                conn.exec_driver_sql(f"USE {quote_name(name)}")
                conn.info["database"] = name
        except SQLAlchemyError as e:
            raise ExecutionError(str(getattr(e, "orig", None) or e)) from e
        self.database = name
        logger.debug("Current database is now %s", name)

    def close(self) -> None:
        """Close every pooled connection."""
        self.engine.dispose()

    def _apply_database(self, dbapi_connection, connection_record, connection_proxy) -> None:
        # A pooled connection keeps whatever database it last switched to.
        current = connection_record.info.get("database", self._initial_database)
        if current == self.database:
            return
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute(f"USE {quote_name(self.database)}")
        finally:
            cursor.close()
        connection_record.info["database"] = self.database
