"""
tsqlshell/batch.py

Batch accumulation: turns input lines into one statement per call.

A batch ends at either:
- a line that is exactly the batch separator (``GO``, any case), which is not
  part of the statement, or
- a line whose trimmed text ends with the statement terminator (``;``).

The accumulated lines are joined with newlines, trimmed, and one trailing
terminator is stripped. Lines are kept raw (untrimmed) so indentation inside
the statement survives.
"""

from __future__ import annotations

from typing import TextIO

from .config import BATCH_SEPARATOR, CONTINUATION_PROMPT, STATEMENT_TERMINATOR
from .errors import InputClosed
from .lines import LineSource, LineStatus


class BatchAccumulator:
    """
    Collect lines from a LineSource until a batch terminator is seen.

    Args:
        source: Line source to pull lines from.
        out: Output stream for continuation prompts.
        separator: Batch separator keyword (matched case-insensitively).
        terminator: Statement terminator character.
    """

    def __init__(
        self,
        source: LineSource,
        out: TextIO,
        separator: str = BATCH_SEPARATOR,
        terminator: str = STATEMENT_TERMINATOR,
    ):
        self.source = source
        self.out = out
        self.separator = separator.upper()
        self.terminator = terminator

    def accumulate(self) -> tuple[str, bool]:
        """
        Read one batch.

        Returns:
            (statement, is_empty). When is_empty is True the caller re-prompts
            without executing anything.

        Raises:
            InputClosed: the line source reached end of input.
        """
        lines: list[str] = []

        while True:
            line, status = self.source.read_line()

            if status is LineStatus.EOF:
                raise InputClosed("end of input")
            if status is LineStatus.INTERRUPTED:
                # Ctrl+C reads nothing this round; typed lines are kept.
                if not lines:
                    return "", True
                self.out.write(CONTINUATION_PROMPT)
                self.out.flush()
                continue

            trimmed = line.strip()
            if not trimmed and not lines:
                return "", True

            lines.append(line)

            if trimmed.upper() == self.separator:
                lines.pop()
                break
            if trimmed.endswith(self.terminator):
                break

            self.out.write(CONTINUATION_PROMPT)
            self.out.flush()

        statement = self.finish(lines)
        return statement, not statement

    def finish(self, lines: list[str]) -> str:
        """Join batch lines into the final statement text."""
        text = "\n".join(lines).strip()
        if text.endswith(self.terminator):
            text = text[: -len(self.terminator)]
        return text
