"""
tsqlshell

Interactive command-line client for SQL Server.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .batch import BatchAccumulator
from .commands import Classification, MetaCommand, StatementKind, classify
from .config import ConnectionParams
from .db import Database
from .errors import DatabaseConnectionError, ExecutionError, InputClosed, ShellError
from .executor import Executor
from .render import RenderedTable, build_table, render
from .repl import Session, Shell
from .results import Affected, Column, Failure, Rows

__all__ = [
    "Affected",
    "BatchAccumulator",
    "Classification",
    "Column",
    "ConnectionParams",
    "Database",
    "DatabaseConnectionError",
    "ExecutionError",
    "Executor",
    "Failure",
    "InputClosed",
    "MetaCommand",
    "RenderedTable",
    "Rows",
    "Session",
    "Shell",
    "ShellError",
    "StatementKind",
    "build_table",
    "classify",
    "render",
]
