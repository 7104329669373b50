"""
tsqlshell/commands.py

Statement classification.

Every completed statement is one of:
- a meta-command handled client-side (exit, quit, help, timing, clear, cls, use)
- a query-shaped statement expected to return rows
- any other statement, executed for its affected-row count

Classification is a prefix heuristic on the leading tokens only; statements are
never parsed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StatementKind(Enum):
    META = "meta"
    QUERY = "query"
    NON_QUERY = "non_query"


class MetaCommand(Enum):
    EXIT = "exit"
    HELP = "help"
    TIMING = "timing"
    CLEAR = "clear"
    USE = "use"


META_COMMANDS: dict[str, MetaCommand] = {
    "exit": MetaCommand.EXIT,
    "quit": MetaCommand.EXIT,
    "help": MetaCommand.HELP,
    "timing": MetaCommand.TIMING,
    "clear": MetaCommand.CLEAR,
    "cls": MetaCommand.CLEAR,
}

QUERY_PREFIXES: tuple[str, ...] = (
    "SELECT",
    "SHOW",
    "WITH",
    "EXPLAIN",
    "EXEC SP_HELP",
    "EXEC SP_DATABASES",
    "EXEC SP_TABLES",
    "EXEC SP_COLUMNS",
    "EXEC SP_WHO",
)


@dataclass(frozen=True)
class Classification:
    """
    Result of classify().

    Attributes:
        kind: META, QUERY or NON_QUERY.
        meta: Which meta-command, when kind is META.
        argument: Meta-command argument (database name for USE). None when the
            command takes none or none was given.
    """
    kind: StatementKind
    meta: MetaCommand | None = None
    argument: str | None = None

    @property
    def is_query(self) -> bool:
        return self.kind is StatementKind.QUERY


QUERY = Classification(StatementKind.QUERY)
NON_QUERY = Classification(StatementKind.NON_QUERY)


def meta(command: MetaCommand, argument: str | None = None) -> Classification:
    return Classification(StatementKind.META, command, argument)


def classify(stmt: str) -> Classification:
    """
    Classify a completed statement.

    Args:
        stmt: Statement text (surrounding whitespace is ignored).

    Returns:
        Classification for the statement.
    """
    text = stmt.strip()
    lowered = text.lower()

    command = META_COMMANDS.get(lowered)
    if command is not None:
        return meta(command)

    parts = text.split()
    if parts and parts[0].lower() == "use":
        # "use" without a name is accepted and does nothing.
        return meta(MetaCommand.USE, parts[1] if len(parts) >= 2 else None)

    upper = text.upper()
    if upper.startswith(QUERY_PREFIXES):
        return QUERY
    return NON_QUERY
