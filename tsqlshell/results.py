"""
tsqlshell/results.py

Outcome objects returned by Executor.execute().

The executor returns one of:
- Rows: a streaming result set (column metadata + lazy row iterator)
- Affected: the row count reported for a statement that returns no rows
- Failure: the raw error text of a statement that failed

Rows holds a live server-side cursor, so it is a context manager: leaving the
``with`` block releases the cursor whether the rows were exhausted, cut short by
the row cap, or abandoned because of an error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Union


@dataclass(frozen=True)
class Column:
    """
    Column metadata of a result set.

    Attributes:
        name: Column name as reported by the driver. Names may repeat.
        type_code: Driver-declared type code (DBAPI ``description[1]``), or None.
    """
    name: str
    type_code: Any = None


@dataclass
class Rows:
    """
    Streaming result of a query-shaped statement.

    Attributes:
        columns: Ordered column metadata.
        rows: Lazy iterator of row tuples; consumed at most once.
        release: Callback that closes the cursor and returns the connection.
    """
    columns: list[Column]
    rows: Iterator[tuple[Any, ...]]
    release: Callable[[], None] = field(default=lambda: None, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def close(self) -> None:
        """Release the cursor. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.release()

    def __enter__(self) -> "Rows":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass(frozen=True)
class Affected:
    """
    Represents successful execution of a statement that returns no rows.

    Attributes:
        count: Number of rows the driver reports as modified (never negative).
    """
    count: int = 0


@dataclass(frozen=True)
class Failure:
    """
    Represents a statement that failed.

    Attributes:
        detail: Raw error text from the driver, displayed verbatim.
    """
    detail: str


Outcome = Union[Rows, Affected, Failure]
