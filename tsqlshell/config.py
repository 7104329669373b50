"""
tsqlshell/config.py

Design constants and connection parameters for the tsqlshell client.

Responsibilities:
- Hold the fixed limits the renderer, executor and pool rely on.
- Build the SQLAlchemy URL and driver connect arguments for a SQL Server login.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy.engine import URL

# Session
DEFAULT_DATABASE = "master"
DEFAULT_MAX_ROWS = 1000

# Execution (seconds)
QUERY_TIMEOUT = 60
LOGIN_TIMEOUT = 10

# Pool: up to 10 open (5 kept idle), one-hour connection lifetime.
POOL_SIZE = 5
MAX_OVERFLOW = 5
POOL_RECYCLE = 3600

# Rendering
MIN_COLUMN_WIDTH = 4
MAX_COLUMN_WIDTH = 50
ELLIPSIS = "..."
NULL_TEXT = "NULL"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Input
BATCH_SEPARATOR = "GO"
STATEMENT_TERMINATOR = ";"
CONTINUATION_PROMPT = "  -> "
HISTORY_FILE = Path("~/.tsqlshell_history").expanduser()
HISTORY_LENGTH = 1000

DEFAULT_DRIVER = "mssql+pymssql"
DEFAULT_PORT = 1433

# Drivers whose per-statement timeout is set on each new DBAPI connection
# (see db.apply_statement_timeout) rather than through connect().
EVENT_TIMEOUT_DRIVERS = {"pyodbc", "pysqlite"}


def driver_connect_args(url: URL, query_timeout: float) -> dict[str, Any]:
    """
    Driver-specific keyword arguments for the DBAPI ``connect()`` call.

    Every supported driver gets a login timeout where it has one and a
    deadline applied to each statement it runs.

    Args:
        url: Target URL; its driver name selects the arguments.
        query_timeout: Per-statement timeout in seconds.

    Returns:
        Keyword arguments for ``create_engine(connect_args=...)``.

    Raises:
        ValueError: the driver has no way to bound a statement.
    """
    driver = url.get_driver_name()
    seconds = max(1, math.ceil(query_timeout))
    if driver == "pymssql":
        return {"login_timeout": LOGIN_TIMEOUT, "timeout": seconds}
    if driver == "pyodbc":
        return {"timeout": LOGIN_TIMEOUT}
    if driver in ("psycopg2", "psycopg"):
        return {"connect_timeout": LOGIN_TIMEOUT, "options": f"-c statement_timeout={seconds * 1000}"}
    if driver in ("pymysql", "mysqldb"):
        return {"connect_timeout": LOGIN_TIMEOUT, "read_timeout": seconds}
    if driver in EVENT_TIMEOUT_DRIVERS:
        return {}
    raise ValueError(f"driver '{url.drivername}' has no per-statement timeout support")


@dataclass(frozen=True)
class ConnectionParams:
    """
    Everything needed to open a connection to one server.

    Attributes:
        host: Server host name or address.
        port: TCP port.
        username: Login name (None for integrated/driver defaults).
        password: Login password.
        database: Initial database; also the first prompt.
        driver: SQLAlchemy dialect+driver name.
        query_timeout: Per-statement timeout handed to the driver, in seconds.
    """
    host: str = "localhost"
    port: int = DEFAULT_PORT
    username: str | None = None
    password: str | None = None
    database: str = DEFAULT_DATABASE
    driver: str = DEFAULT_DRIVER
    query_timeout: float = QUERY_TIMEOUT

    def url(self) -> URL:
        """Return the SQLAlchemy URL for these parameters."""
        return URL.create(
            self.driver,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    def describe(self) -> str:
        return f"{self.host}:{self.port}"
