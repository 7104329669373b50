import io
import re
from types import SimpleNamespace

from tsqlshell import Database
from tsqlshell.db import ServerInfo
from tsqlshell.errors import ExecutionError
from tsqlshell.lines import LineStatus
from tsqlshell.repl import CLEAR_SCREEN, ERROR_HEADER, Session, Shell, banner, repl
from tsqlshell.results import Column, Rows

from conftest import ScriptedSource


def run_shell(db, lines, **session):
    out = io.StringIO()
    shell = Shell(db, ScriptedSource(lines), out, Session(database="master", **session))
    code = shell.run()
    return code, out.getvalue(), shell


def test_exit_ends_session(db):
    code, out, _ = run_shell(db, ["exit", "SELECT 1;"])
    assert code == 0
    assert out == "master> \n"


def test_end_of_input_ends_session(db):
    code, out, _ = run_shell(db, [])
    assert code == 0
    assert out == "master> \n"


def test_query_renders_table(db):
    code, out, _ = run_shell(db, [
        "CREATE TABLE users (id INTEGER, email TEXT);",
        "INSERT INTO users VALUES (1, 'a@b.com'), (2, NULL);",
        "SELECT id, email",
        "FROM users",
        "ORDER BY id",
        "GO",
        "quit",
    ])
    assert code == 0
    assert (
        "master>   ->   ->   -> "
        "+------+---------+\n"
        "| id   | email   |\n"
        "+------+---------+\n"
        "| 1    | a@b.com |\n"
        "| 2    | NULL    |\n"
        "+------+---------+\n"
        "(2 rows affected)\n"
        "\n"
    ) in out


def test_timing_adds_elapsed_line(db):
    _, out, shell = run_shell(db, [
        "CREATE TABLE t (x INTEGER);",
        "INSERT INTO t VALUES (1), (2), (3);",
        "timing",
        "UPDATE t SET x = x + 1;",
    ])
    assert "Timing enabled\n" in out
    assert re.search(r"\(3 rows affected\)\nTime: \d+\.\d{3} sec\n\n", out)
    assert shell.session.timing is True


def test_timing_toggles_off(db):
    _, out, shell = run_shell(db, ["timing", "timing", "SELECT 1;"])
    assert "Timing enabled\n" in out
    assert "Timing disabled\n" in out
    assert "Time:" not in out
    assert shell.session.timing is False


def test_failure_is_reported_and_session_continues(db):
    code, out, _ = run_shell(db, ["SELECT * FROM nope;", "SELECT 1 AS one;"])
    assert code == 0
    assert f"{ERROR_HEADER}\nno such table: nope\n\n" in out
    assert "| one  |" in out


def test_row_cap_applies_to_session(db):
    _, out, _ = run_shell(db, [
        "WITH RECURSIVE n(i) AS (SELECT 1 UNION ALL SELECT i + 1 FROM n WHERE i < 50) SELECT i FROM n;",
    ], max_rows=5)
    assert "(5 rows affected)\n" in out
    assert "| 6    |" not in out


def test_use_changes_prompt(db, monkeypatch):
    switched = []
    monkeypatch.setattr(db, "use", switched.append)
    _, out, shell = run_shell(db, ["USE sales", "GO"])
    assert switched == ["sales"]
    assert "Changed database context to 'sales'.\n" in out
    assert out.endswith("sales> \n")
    assert shell.session.database == "sales"


def test_use_without_name_is_ignored(db):
    _, out, shell = run_shell(db, ["use;"])
    assert out == "master> master> \n"
    assert shell.session.database == "master"


def test_use_failure_keeps_database(db):
    _, out, shell = run_shell(db, ["use other;"])
    assert "Error: " in out
    assert shell.session.database == "master"


def test_help_and_clear(db):
    _, out, _ = run_shell(db, ["help", "GO", "cls;"])
    assert "SQL Server Commands" in out
    assert CLEAR_SCREEN in out


def test_blank_lines_and_interrupts_reprompt(db):
    _, out, _ = run_shell(db, ["", ("", LineStatus.INTERRUPTED), "   "])
    assert out == "master> master> master> master> \n"


def test_unexpected_error_does_not_end_session(db, monkeypatch):
    _, out, shell = run_shell(db, [])

    def boom(stmt, classification):
        raise RuntimeError("boom")

    monkeypatch.setattr(shell.executor, "execute", boom)
    shell.batches.source = ScriptedSource(["SELECT 1;", "exit"])
    assert shell.run() == 0
    assert f"{ERROR_HEADER}\nInternal error: boom\n\n" in shell.out.getvalue()


def test_banner_for_sql_server():
    db = SimpleNamespace(
        dialect="mssql",
        target="db.example.com:1433",
        server_info=ServerInfo(edition="Developer Edition (64-bit)", product_level="RTM"),
    )
    assert banner(db) == (
        "Microsoft SQL Server\n"
        "Server: db.example.com:1433\n"
        "Edition: Developer Edition (64-bit) RTM\n"
    )


def test_repl_prints_banner_then_runs(db):
    out = io.StringIO()
    assert repl(db, ScriptedSource(["SELECT 2 AS two;"]), out, max_rows=10) == 0
    text = out.getvalue()
    assert text.startswith("sqlite\nServer: sqlite:///")
    assert "| two  |" in text


def test_fetch_error_mid_stream_prints_only_diagnostic(db, monkeypatch):
    conn = db.connection()
    released = []

    def rows():
        yield (1,)
        raise ExecutionError("connection dropped")

    def release():
        released.append(True)
        conn.close()

    outcome = Rows(columns=[Column("n")], rows=rows(), release=release)
    _, _, shell = run_shell(db, [])
    monkeypatch.setattr(shell.executor, "execute", lambda stmt, classification: outcome)
    shell.batches.source = ScriptedSource(["SELECT n FROM t;", "exit"])
    shell.out = io.StringIO()

    assert shell.run() == 0
    out = shell.out.getvalue()
    assert f"{ERROR_HEADER}\nconnection dropped\n\n" in out
    assert "+------" not in out
    assert released == [True]
    assert db.engine.pool.checkedout() == 0


def test_timeout_does_not_end_session(tmp_path):
    slow = Database.from_url(f"sqlite:///{tmp_path / 'slow.db'}", query_timeout=0.2)
    try:
        code, out, _ = run_shell(slow, [
            "WITH RECURSIVE c(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM c) SELECT count(*) FROM c;",
            "SELECT 2 AS two;",
        ])
    finally:
        slow.close()
    assert code == 0
    assert f"{ERROR_HEADER}\ninterrupted\n\n" in out
    assert "| two  |" in out
