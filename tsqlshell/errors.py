"""
tsqlshell/errors.py

Centralized exception types for the tsqlshell client.

This module defines:
- A common base exception for all client errors
- The startup failure raised when no connection can be established
- The per-statement failure shown to the user while the session continues
- The end-of-input signal that ends the session gracefully
"""

from __future__ import annotations


class ShellError(Exception):
    """
    Base class for all tsqlshell errors.

    Catching this exception allows callers (the CLI, tests) to handle client
    errors without accidentally swallowing unrelated system exceptions.
    """


class DatabaseConnectionError(ShellError):
    """
    Raised when the server cannot be reached or fails its health check.

    This is fatal at startup: the session loop is never entered.

    Args:
        target: Human readable description of the server (host:port or URL).
        message: Raw driver message.
    """

    def __init__(self, target: str, message: str):
        self.target = target
        self.message = message
        super().__init__(self.__str__())

    def __str__(self) -> str:
        return f"Unable to connect to {self.target}: {self.message}"


class ExecutionError(ShellError):
    """
    Raised when a single statement fails (syntax, permissions, timeout,
    broken connection).

    The message is the raw driver text; it is displayed verbatim and the
    session continues.
    """


class InputClosed(ShellError):
    """
    Raised when the line source reaches end of input or fails unrecoverably.

    Not a real error: the session loop treats it exactly like ``exit``.
    """
