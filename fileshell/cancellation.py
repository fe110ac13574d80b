#!/usr/bin/env python3
"""
Cooperative cancellation for long-running traversals.

A CancellationToken is a single flag. The terminal's SIGINT handler sets
it; every traversal (copy, move, delete, find, tree listing) polls it at
each visited entry and raises Interrupted once it is set. The REPL loop
clears it after reporting the interruption.
"""

import logging
import signal
from contextlib import contextmanager
from typing import Callable, Optional

from .errors import Interrupted

logger = logging.getLogger(__name__)


class CancellationToken:
    """A polled cancellation flag passed explicitly into traversals."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation. Safe to call from a signal handler."""
        self._cancelled = True

    def clear(self) -> bool:
        """Reset the flag, returning whether it was set."""
        was_set = self._cancelled
        self._cancelled = False
        return was_set

    def check(self, message: str = 'interrupted') -> None:
        """Raise Interrupted if cancellation has been requested."""
        if self._cancelled:
            raise Interrupted(message)


def check(token: Optional[CancellationToken], message: str = 'interrupted') -> None:
    """Poll an optional token."""
    if token is not None:
        token.check(message)


def install_sigint_handler(token: CancellationToken,
                           is_busy: Callable[[], bool]):
    """
    Route SIGINT to the token while a command is running.

    When no command is running (the user is sitting at the prompt) the
    signal raises KeyboardInterrupt as usual so input() is abandoned.
    Returns the previous handler so it can be restored.
    """
    def handler(signum, frame):
        if is_busy():
            logger.debug("SIGINT during command, cancelling")
            token.cancel()
        else:
            raise KeyboardInterrupt

    return signal.signal(signal.SIGINT, handler)


@contextmanager
def sigint_routed_to(token: CancellationToken, is_busy: Callable[[], bool]):
    """Install the handler from install_sigint_handler for a block, then restore."""
    previous = install_sigint_handler(token, is_busy)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)
