"""
tsqlshell/executor.py

Statement execution for the tsqlshell client.

Responsibilities:
- Send one classified statement to the database collaborator
- Return a streaming Rows outcome for query-shaped statements, with column
  names and declared types read before returning
- Return an Affected outcome (driver-reported row count) for other statements
- Turn every driver failure, timeouts included, into a Failure carrying the raw
  error text

Core design:
- Statements are sent as-is with exec_driver_sql(), so the driver sees exactly
  what the user typed (no bind-parameter parsing of ':' or '%').
- The per-statement deadline is enforced by the driver (see
  config.driver_connect_args and db.apply_statement_timeout); the executor
  never retries.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Iterator

from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.exc import SQLAlchemyError

from .commands import Classification
from .db import Database
from .errors import ExecutionError
from .results import Affected, Column, Failure, Outcome, Rows

logger = logging.getLogger(__name__)


def error_text(error: SQLAlchemyError) -> str:
    """Raw driver message of a SQLAlchemy error (the wrapped DBAPI error if any)."""
    orig = getattr(error, "orig", None)
    return str(orig if orig is not None else error)


def columns_of(result: CursorResult) -> list[Column]:
    """Column metadata from the DBAPI cursor description."""
    description = result.cursor.description if result.cursor is not None else None
    if not description:
        return [Column(name) for name in result.keys()]
    return [Column(d[0], d[1]) for d in description]


def stream_rows(result: CursorResult) -> Iterator[tuple[Any, ...]]:
    """
    Yield rows one at a time as plain tuples.

    Raises:
        ExecutionError: if fetching fails part-way (timeout, dropped connection).
    """
    try:
        for row in result:
            yield tuple(row)
    except SQLAlchemyError as e:
        raise ExecutionError(error_text(e)) from e


@dataclass
class Executor:
    """
    Executes statements against a Database.

    Args:
        db: Database collaborator (pooled engine).
    """
    db: Database

    def execute(self, stmt: str, classification: Classification) -> Outcome:
        """
        Execute a single statement.

        Args:
            stmt: Statement text.
            classification: Result of classify(stmt); decides whether rows
                are expected.

        Returns:
            Rows for queries, Affected for everything else, Failure on error.
            The caller must close a Rows outcome (it is a context manager).
        """
        start = time.perf_counter()
        try:
            conn = self.db.connection()
        except SQLAlchemyError as e:
            logger.debug("Checkout failed after %.3f sec: %s", time.perf_counter() - start, e)
            return Failure(error_text(e))

        try:
            result = conn.exec_driver_sql(stmt)
        except SQLAlchemyError as e:
            conn.close()
            logger.debug("Statement failed after %.3f sec: %s", time.perf_counter() - start, e)
            return Failure(error_text(e))

        if classification.is_query and result.returns_rows:
            outcome: Outcome = self._rows(conn, result)
        else:
            outcome = self._affected(conn, result)
        logger.debug("Statement returned %s after %.3f sec", type(outcome).__name__, time.perf_counter() - start)
        return outcome

    def _rows(self, conn: Connection, result: CursorResult) -> Rows:
        def release() -> None:
            try:
                result.close()
            finally:
                conn.close()

        return Rows(columns=columns_of(result), rows=stream_rows(result), release=release)

    def _affected(self, conn: Connection, result: CursorResult) -> Affected:
        try:
            count = result.rowcount
        finally:
            result.close()
            conn.close()
        # DBAPI reports -1 when the count is unknown (DDL, some procedures).
        return Affected(max(count, 0))
