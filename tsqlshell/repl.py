"""
repl.py

Interactive session loop for the tsqlshell client.

Responsibilities:
- Prompt with the current database name and read one batch at a time
  (terminated by GO on its own line or a trailing ';').
- Handle meta-commands client-side:
    - exit / quit
    - help
    - timing
    - clear / cls
    - use <database>
- Execute everything else and display either a result table or the affected
  row count, plus elapsed time when timing is on.
- Report statement failures and keep going; only exit/quit or end of input
  end the session.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TextIO

from .batch import BatchAccumulator
from .commands import Classification, MetaCommand, StatementKind, classify
from .config import DEFAULT_MAX_ROWS
from .db import Database
from .errors import ExecutionError, InputClosed
from .executor import Executor
from .lines import LineSource
from .render import render, render_affected
from .results import Affected, Failure, Outcome, Rows

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\033[2J\033[H"
ERROR_HEADER = "Msg 50000, Level 16, State 1"

HELP_TEXT = """
SQL Server Commands
===================

General:
  help                    Show this help
  exit, quit              Exit
  clear, cls              Clear screen
  timing                  Toggle timing
  GO                      Execute batch (SQL Server style)

Database:
  USE <database>          Change database

Query Commands:
  SELECT ...              Query data
  INSERT ...              Insert data
  UPDATE ...              Update data
  DELETE ...              Delete data

Schema Commands:
  CREATE TABLE ...        Create table
  ALTER TABLE ...         Alter table
  DROP TABLE ...          Drop table
  CREATE INDEX ...        Create index

System Stored Procedures:
  sp_help [table]         Show table info
  sp_databases            List databases
  sp_tables               List tables
  sp_columns <table>      List columns
  sp_who                  Show active connections

Information Schema:
  SELECT * FROM INFORMATION_SCHEMA.TABLES
  SELECT * FROM INFORMATION_SCHEMA.COLUMNS WHERE TABLE_NAME = 'table'

System Views:
  SELECT * FROM sys.databases
  SELECT * FROM sys.tables
  SELECT * FROM sys.columns WHERE object_id = OBJECT_ID('table')

For more information: https://docs.microsoft.com/sql/
"""


@dataclass
class Session:
    """
    Mutable state of one interactive session.

    Attributes:
        database: Current database name, shown in the prompt.
        timing: Whether elapsed time is printed after each statement.
        max_rows: Row cap for result tables; fixed for the session.
    """
    database: str
    timing: bool = False
    max_rows: int = DEFAULT_MAX_ROWS

    @property
    def prompt(self) -> str:
        return f"{self.database}> "


def banner(db: Database) -> str:
    """Welcome text shown once after connecting."""
    info = db.server_info
    if db.dialect == "mssql":
        return (
            "Microsoft SQL Server\n"
            f"Server: {db.target}\n"
            f"Edition: {info.edition} {info.product_level}\n"
        )
    return f"{db.dialect}\nServer: {db.target}\n"


class Shell:
    """
    The session loop.

    Args:
        db: Connected database.
        source: Line source for user input.
        out: Output stream for prompts, tables and diagnostics.
        session: Session state; created from the database name if omitted.
    """

    def __init__(self, db: Database, source: LineSource, out: TextIO, session: Session | None = None):
        self.db = db
        self.out = out
        self.session = session or Session(database=db.database)
        self.batches = BatchAccumulator(source, out)
        self.executor = Executor(db)

    def write(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()

    def run(self) -> int:
        """
        Run until exit/quit or end of input.

        Returns:
            Process exit code (0 on normal exit).
        """
        while True:
            self.write(self.session.prompt)
            try:
                stmt, empty = self.batches.accumulate()
            except InputClosed:
                self.write("\n")
                return 0
            if empty:
                continue

            stmt = stmt.strip()
            classification = classify(stmt)

            if classification.kind is StatementKind.META:
                if classification.meta is MetaCommand.EXIT:
                    self.write("\n")
                    return 0
                self.handle_meta(classification)
                continue

            try:
                self.execute(stmt, classification)
            except ExecutionError as e:
                self.print_error(str(e))
            except Exception as e:
                # Unexpected internal error; keep the session alive but show it.
                logger.exception("Unexpected error while executing statement")
                self.print_error(f"Internal error: {e}")

    def handle_meta(self, classification: Classification) -> None:
        """Perform a meta-command other than exit."""
        command = classification.meta
        if command is MetaCommand.HELP:
            self.write(HELP_TEXT)
        elif command is MetaCommand.TIMING:
            self.session.timing = not self.session.timing
            self.write("Timing enabled\n" if self.session.timing else "Timing disabled\n")
        elif command is MetaCommand.CLEAR:
            self.write(CLEAR_SCREEN)
        elif command is MetaCommand.USE:
            if classification.argument is not None:
                self.use_database(classification.argument)

    def use_database(self, name: str) -> None:
        try:
            self.db.use(name)
        except ExecutionError as e:
            self.write(f"Error: {e}\n")
            return
        self.session.database = name
        self.write(f"Changed database context to '{name}'.\n")

    def execute(self, stmt: str, classification: Classification) -> None:
        """
        Execute one statement and display its outcome.

        Raises:
            ExecutionError: if fetching rows fails part-way.
        """
        start = time.perf_counter()
        outcome = self.executor.execute(stmt, classification)
        self.display(outcome, start)

    def display(self, outcome: Outcome, start: float) -> None:
        if isinstance(outcome, Rows):
            with outcome:
                render(
                    self.out,
                    outcome.column_names,
                    outcome.rows,
                    start,
                    max_rows=self.session.max_rows,
                    timing=self.session.timing,
                )
            return

        if isinstance(outcome, Affected):
            render_affected(self.out, outcome.count, start, timing=self.session.timing)
            return

        if isinstance(outcome, Failure):
            self.print_error(outcome.detail)
            return

        raise TypeError(f"Unexpected outcome: {outcome!r}")

    def print_error(self, detail: str) -> None:
        self.write(f"{ERROR_HEADER}\n{detail}\n\n")


def repl(db: Database, source: LineSource, out: TextIO, max_rows: int = DEFAULT_MAX_ROWS) -> int:
    """
    Print the banner and run an interactive session.

    Args:
        db: Connected database.
        source: Line source for user input.
        out: Output stream.
        max_rows: Row cap for result tables.

    Returns:
        Process exit code (0 on normal exit).
    """
    out.write(banner(db) + "\n")
    out.flush()
    session = Session(database=db.database, max_rows=max_rows)
    return Shell(db, source, out, session).run()
