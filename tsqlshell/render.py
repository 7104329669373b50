"""
tsqlshell/render.py

Result rendering for the tsqlshell client.

Responsibilities:
- Format individual cell values by their runtime kind (NULL, bytes, temporal,
  anything else)
- Stream rows into a bounded table, growing column widths as values arrive and
  truncating values that do not fit the maximum width
- Print the bordered table and the row-count / timing summary

Width rules:
- A column starts at max(4, min(len(name), 50)).
- A value longer than the current width grows the column, up to 50.
- A value longer than 50 is cut to 47 characters plus "..." and the column
  stays at 50.

Example output:

    +------+-------+
    | id   | name  |
    +------+-------+
    | 1    | alice |
    +------+-------+
    (1 row affected)

"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from itertools import islice
from typing import Any, Callable, Iterable, Sequence, TextIO

from .config import (
    DEFAULT_MAX_ROWS,
    ELLIPSIS,
    MAX_COLUMN_WIDTH,
    MIN_COLUMN_WIDTH,
    NULL_TEXT,
    TIMESTAMP_FORMAT,
)


class CellKind(Enum):
    NULL = "null"
    BYTES = "bytes"
    TEMPORAL = "temporal"
    OTHER = "other"


def cell_kind(value: Any) -> CellKind:
    if value is None:
        return CellKind.NULL
    if isinstance(value, (bytes, bytearray, memoryview)):
        return CellKind.BYTES
    # datetime is a subclass of date
    if isinstance(value, date):
        return CellKind.TEMPORAL
    return CellKind.OTHER


def _format_null(value: None) -> str:
    return NULL_TEXT


def _format_bytes(value: bytes | bytearray | memoryview) -> str:
    return bytes(value).decode("utf-8", errors="replace")


def _format_temporal(value: date) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


CELL_FORMATTERS: dict[CellKind, Callable[[Any], str]] = {
    CellKind.NULL: _format_null,
    CellKind.BYTES: _format_bytes,
    CellKind.TEMPORAL: _format_temporal,
    CellKind.OTHER: str,
}


def format_cell(value: Any) -> str:
    """
    Format one result value for display.

    Args:
        value: Value as returned by the driver.

    Returns:
        Display text (untruncated).
    """
    return CELL_FORMATTERS[cell_kind(value)](value)


def truncate(text: str, limit: int = MAX_COLUMN_WIDTH) -> str:
    """Cut text longer than limit to limit characters ending in '...'."""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def initial_width(name: str) -> int:
    return max(MIN_COLUMN_WIDTH, min(len(name), MAX_COLUMN_WIDTH))


@dataclass
class RenderedTable:
    """
    A bounded, formatted result set ready for printing.

    Attributes:
        headers: Column names, truncated to the maximum width.
        widths: Display width per column, each within [4, 50].
        rows: Formatted rows (at most the row cap).
    """
    headers: list[str]
    widths: list[int]
    rows: list[tuple[str, ...]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def add_row(self, values: Sequence[Any]) -> None:
        """Format one row, widening or truncating columns as needed."""
        cells: list[str] = []
        for i, value in enumerate(values):
            text = format_cell(value)
            if len(text) > self.widths[i]:
                if len(text) > MAX_COLUMN_WIDTH:
                    text = truncate(text)
                self.widths[i] = len(text)
            cells.append(text)
        self.rows.append(tuple(cells))


def build_table(
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    max_rows: int = DEFAULT_MAX_ROWS,
) -> RenderedTable:
    """
    Stream rows into a RenderedTable.

    At most max_rows rows are pulled from the iterable; the rest are never
    fetched.

    Args:
        columns: Column names (may repeat).
        rows: Row values, each aligned with columns.
        max_rows: Row cap.

    Returns:
        RenderedTable.
    """
    table = RenderedTable(
        headers=[truncate(name) for name in columns],
        widths=[initial_width(name) for name in columns],
    )
    for row in islice(rows, max_rows):
        table.add_row(row)
    return table


def border(widths: Sequence[int]) -> str:
    return "+" + "".join("-" * (w + 2) + "+" for w in widths)


def format_row(cells: Sequence[str], widths: Sequence[int]) -> str:
    return "| " + " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells)) + " |"


def format_table(table: RenderedTable) -> list[str]:
    """Lines of the bordered table: border, header, border, rows, border."""
    sep = border(table.widths)
    out = [sep, format_row(table.headers, table.widths), sep]
    out.extend(format_row(r, table.widths) for r in table.rows)
    out.append(sep)
    return out


def rows_affected(count: int) -> str:
    if count == 1:
        return "(1 row affected)"
    return f"({count} rows affected)"


def format_summary(count: int, elapsed: float | None = None) -> list[str]:
    """
    Summary lines after a result: row count, optional timing, blank line.

    Args:
        count: Rows rendered or affected.
        elapsed: Seconds since the statement was submitted; None when timing
            is off.
    """
    out = [rows_affected(count)]
    if elapsed is not None:
        out.append(f"Time: {elapsed:.3f} sec")
    out.append("")
    return out


def write_lines(out: TextIO, lines: Iterable[str]) -> None:
    for line in lines:
        out.write(line + "\n")
    out.flush()


def elapsed_since(start: float, timing: bool) -> float | None:
    return time.perf_counter() - start if timing else None


def render(
    out: TextIO,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    start: float,
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
    timing: bool = False,
) -> RenderedTable:
    """
    Render a result set as a table followed by its summary.

    Rows are collected (up to max_rows) before anything is printed, so a fetch
    error part-way leaves no half-printed table.

    Args:
        out: Output stream.
        columns: Column names.
        rows: Row values.
        start: time.perf_counter() value taken when the statement was submitted.
        max_rows: Row cap.
        timing: Print the elapsed time.

    Returns:
        The RenderedTable that was printed.
    """
    table = build_table(columns, rows, max_rows)
    write_lines(out, format_table(table))
    write_lines(out, format_summary(table.row_count, elapsed_since(start, timing)))
    return table


def render_affected(out: TextIO, count: int, start: float, *, timing: bool = False) -> None:
    """Print the summary for a statement that returned no rows."""
    write_lines(out, format_summary(count, elapsed_since(start, timing)))
