"""
tsqlshell/__main__.py

Package entry point for running tsqlshell as a module:

    python -m tsqlshell -S host -U user -d database

This also serves as the target for the console script entry point defined in
pyproject.toml:

    tsqlshell -S host -U user -d database

Implementation notes:
- An interactive terminal gets readline-backed input; piped stdin is read as a
  plain stream so scripts can be fed in.
- Connection failures are reported on stderr with exit code 1.
"""

from __future__ import annotations

import logging
import sys

import click

from . import __version__
from .config import (
    DEFAULT_DATABASE,
    DEFAULT_DRIVER,
    DEFAULT_MAX_ROWS,
    DEFAULT_PORT,
    HISTORY_FILE,
    QUERY_TIMEOUT,
    ConnectionParams,
)
from .db import Database
from .errors import DatabaseConnectionError
from .lines import ConsoleLineSource, LineSource, StreamLineSource
from .repl import repl

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def open_database(url: str | None, params: ConnectionParams) -> Database:
    if url:
        return Database.from_url(url, query_timeout=params.query_timeout)
    return Database.connect(params)


def line_source(stdin, stdout) -> LineSource:
    if stdin.isatty():
        return ConsoleLineSource(history_file=HISTORY_FILE, echo=stdout)
    return StreamLineSource(stdin)


@click.command(name="tsqlshell", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("-S", "--server", envvar="TSQLSHELL_SERVER", default="localhost", show_default=True,
              help="Server host name or address.")
@click.option("-P", "--port", envvar="TSQLSHELL_PORT", type=int, default=DEFAULT_PORT, show_default=True,
              help="Server TCP port.")
@click.option("-U", "--user", envvar="TSQLSHELL_USER", default=None, help="Login name.")
@click.option("--password", envvar="TSQLSHELL_PASSWORD", default=None,
              help="Login password. Prompted for when a user is given without one.")
@click.option("-d", "--database", envvar="TSQLSHELL_DATABASE", default=DEFAULT_DATABASE, show_default=True,
              help="Initial database.")
@click.option("--driver", default=DEFAULT_DRIVER, show_default=True, help="SQLAlchemy dialect+driver.")
@click.option("--url", envvar="TSQLSHELL_URL", default=None,
              help="Full SQLAlchemy URL; overrides the server/login options.")
@click.option("--max-rows", type=click.IntRange(min=1), default=DEFAULT_MAX_ROWS, show_default=True,
              help="Maximum rows displayed per result.")
@click.option("--timeout", type=click.IntRange(min=1), default=QUERY_TIMEOUT, show_default=True,
              help="Per-statement timeout in seconds.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.version_option(__version__)
def main(
    server: str,
    port: int,
    user: str | None,
    password: str | None,
    database: str,
    driver: str,
    url: str | None,
    max_rows: int,
    timeout: int,
    verbose: bool,
) -> None:
    """
    Interactive SQL Server client. End a statement with ';' or a line
    containing only GO. Type help for commands.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if url is None and user is not None and password is None:
        password = click.prompt("Password", hide_input=True, default="", show_default=False)

    params = ConnectionParams(
        host=server,
        port=port,
        username=user,
        password=password,
        database=database,
        driver=driver,
        query_timeout=timeout,
    )

    try:
        db = open_database(url, params)
    except DatabaseConnectionError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    stdout = click.get_text_stream("stdout")
    source = line_source(click.get_text_stream("stdin"), stdout)
    try:
        code = repl(db, source, stdout, max_rows=max_rows)
    finally:
        source.close()
        db.close()
    sys.exit(code)


if __name__ == "__main__":
    # pylint: disable=no-value-for-parameter
    main()
