#!/usr/bin/env python3
"""
Error taxonomy for fileshell.

Every failure a command can report is one of these, or a plain OSError
bubbling up from the filesystem. The terminal's CommandExecutor is the
only place that catches them and turns them into a diagnostic line.
"""

from typing import List, Optional


class ShellError(Exception):
    """Base class for errors raised by fileshell commands."""


class NotFound(ShellError, FileNotFoundError):
    """A path that must exist does not."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        self.message = message or f"no such file or directory: {path}"
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class InvalidModeSpec(ShellError, ValueError):
    """A chmod mode is neither 3-digit octal nor a symbolic clause list."""

    def __init__(self, spec: str, reason: str = ''):
        self.spec = spec
        detail = f" ({reason})" if reason else ''
        super().__init__(f"invalid mode: '{spec}'{detail}")


class UsageError(ShellError):
    """Wrong argument count or shape for a command."""


class Interrupted(ShellError):
    """Cancellation was observed in the middle of a traversal.

    ``report`` holds whatever partial TreeReport the operation had
    accumulated, when there is one. ``errors`` holds diagnostics the
    command had already collected before the interruption.
    """

    def __init__(self, message: str = 'interrupted', report=None,
                 errors: Optional[List[str]] = None):
        super().__init__(message)
        self.report = report
        self.errors = list(errors or [])
