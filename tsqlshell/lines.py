"""
tsqlshell/lines.py

Line sources for the interactive session.

A line source yields one logical input line per call and tells end-of-input
and user interrupts apart from ordinary lines:

    read_line() -> (text, LineStatus)

Two implementations are provided:
- ConsoleLineSource: interactive terminal via input(), with readline history
  when the platform has it.
- StreamLineSource: any text stream (piped stdin, a script file, StringIO).
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Protocol, TextIO

try:
    import readline
except ImportError:
    # readline is optional; if missing, input still works without history.
    readline = None  # type: ignore[assignment]

from .config import HISTORY_LENGTH

logger = logging.getLogger(__name__)


class LineStatus(Enum):
    NORMAL = "normal"
    EOF = "eof"
    INTERRUPTED = "interrupted"


class LineSource(Protocol):
    def read_line(self) -> tuple[str, LineStatus]: ...

    def close(self) -> None: ...


class ConsoleLineSource:
    """
    Read lines from the terminal.

    Prompts are written by the session to its own output, so input() is
    called with an empty prompt.

    Args:
        history_file: Where readline history is loaded from and saved to.
            None disables history persistence.
        echo: Stream that receives the ``^C`` marker on interrupt.
    """

    def __init__(self, history_file: Path | None = None, echo: TextIO | None = None):
        self.history_file = history_file
        self.echo = echo
        if readline is not None and history_file is not None:
            readline.set_history_length(HISTORY_LENGTH)
            try:
                readline.read_history_file(history_file)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Could not load history from %s: %s", history_file, e)

    def read_line(self) -> tuple[str, LineStatus]:
        try:
            return input(), LineStatus.NORMAL
        except EOFError:
            return "", LineStatus.EOF
        except KeyboardInterrupt:
            if self.echo is not None:
                self.echo.write("^C\n")
                self.echo.flush()
            return "", LineStatus.INTERRUPTED
        except OSError as e:
            # An unusable terminal ends the session like EOF does.
            logger.error("Input error: %s", e)
            return "", LineStatus.EOF

    def close(self) -> None:
        if readline is None or self.history_file is None:
            return
        try:
            readline.write_history_file(self.history_file)
        except OSError as e:
            logger.warning("Could not save history to %s: %s", self.history_file, e)


class StreamLineSource:
    """
    Read lines from a text stream or any iterable of strings.

    Trailing newlines are removed. Used for non-interactive stdin and tests.
    """

    def __init__(self, stream: TextIO | Iterable[str]):
        self._lines: Iterator[str] = iter(stream)

    def read_line(self) -> tuple[str, LineStatus]:
        try:
            line = next(self._lines)
        except StopIteration:
            return "", LineStatus.EOF
        except OSError as e:
            logger.error("Input error: %s", e)
            return "", LineStatus.EOF
        return line.rstrip("\r\n"), LineStatus.NORMAL

    def close(self) -> None:
        pass
