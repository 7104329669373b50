import io
from datetime import date, datetime
from decimal import Decimal

from tsqlshell.render import (
    CellKind,
    build_table,
    cell_kind,
    format_cell,
    format_summary,
    format_table,
    render,
    render_affected,
)


def test_format_cell_by_kind():
    assert format_cell(None) == "NULL"
    assert format_cell(b"abc") == "abc"
    assert format_cell(bytearray(b"xyz")) == "xyz"
    assert format_cell(datetime(2024, 1, 2, 3, 4, 5, 999)) == "2024-01-02 03:04:05"
    assert format_cell(date(2024, 1, 2)) == "2024-01-02 00:00:00"
    assert format_cell(Decimal("2.50")) == "2.50"
    assert format_cell(42) == "42"
    assert format_cell("text") == "text"


def test_cell_kind():
    assert cell_kind(None) is CellKind.NULL
    assert cell_kind(memoryview(b"a")) is CellKind.BYTES
    assert cell_kind(datetime(2024, 1, 1)) is CellKind.TEMPORAL
    assert cell_kind(3.5) is CellKind.OTHER


def test_initial_widths_are_clamped():
    table = build_table(["id", "description", "x" * 70], [])
    assert table.widths == [4, 11, 50]
    assert table.headers[2] == "x" * 47 + "..."


def test_width_grows_with_values():
    table = build_table(["id"], [(1,), ("abcdefg",), ("abc",)])
    assert table.widths == [7]
    assert table.rows == [("1",), ("abcdefg",), ("abc",)]


def test_long_values_are_truncated_at_fifty():
    table = build_table(["note"], [("a" * 49,), ("b" * 60,), ("c" * 50,), ("d" * 51,)])
    assert table.widths == [50]
    cells = [r[0] for r in table.rows]
    assert cells[0] == "a" * 49
    assert cells[1] == "b" * 47 + "..."
    assert cells[2] == "c" * 50
    assert cells[3] == "d" * 47 + "..."
    assert all(len(c) <= 50 for c in cells)


def test_row_cap_stops_fetching():
    source = iter([(i,) for i in range(10)])
    table = build_table(["n"], source, max_rows=3)
    assert table.row_count == 3
    # remaining rows were never pulled from the cursor
    assert next(source) == (3,)


def test_format_table_layout():
    table = build_table(["id", "name"], [(1, "alice"), (2, None)])
    assert format_table(table) == [
        "+------+-------+",
        "| id   | name  |",
        "+------+-------+",
        "| 1    | alice |",
        "| 2    | NULL  |",
        "+------+-------+",
    ]


def test_duplicate_column_names():
    table = build_table(["a", "a"], [(1, 2)])
    assert format_table(table)[1] == "| a    | a    |"


def test_summary_pluralization():
    assert format_summary(0) == ["(0 rows affected)", ""]
    assert format_summary(1) == ["(1 row affected)", ""]
    assert format_summary(2) == ["(2 rows affected)", ""]
    assert format_summary(3, 0.5) == ["(3 rows affected)", "Time: 0.500 sec", ""]


def test_render_is_deterministic_without_timing():
    rows = [(1, "x" * 80, None), (2, b"bytes", datetime(2020, 5, 6, 7, 8, 9))]
    first, second = io.StringIO(), io.StringIO()
    render(first, ["id", "payload", "at"], iter(rows), 0.0)
    render(second, ["id", "payload", "at"], iter(rows), 0.0)
    assert first.getvalue() == second.getvalue()
    assert first.getvalue().endswith("(2 rows affected)\n\n")


def test_render_empty_result():
    out = io.StringIO()
    render(out, ["id"], iter([]), 0.0)
    assert out.getvalue() == (
        "+------+\n"
        "| id   |\n"
        "+------+\n"
        "+------+\n"
        "(0 rows affected)\n"
        "\n"
    )


def test_render_reports_capped_count():
    out = io.StringIO()
    table = render(out, ["n"], ((i,) for i in range(25)), 0.0, max_rows=10)
    assert table.row_count == 10
    assert "(10 rows affected)\n" in out.getvalue()


def test_render_affected_with_timing():
    out = io.StringIO()
    render_affected(out, 1, 0.0, timing=True)
    lines = out.getvalue().split("\n")
    assert lines[0] == "(1 row affected)"
    assert lines[1].startswith("Time: ")
    assert lines[1].endswith(" sec")
    assert lines[2:] == ["", ""]
