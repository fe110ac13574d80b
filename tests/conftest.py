#!/usr/bin/env python3
"""
Shared fixtures for the fileshell tests.

Every test works on a real temporary directory tree built under tmp_path.
"""

import io
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fileshell.cancellation import CancellationToken
from fileshell.terminal import TerminalConfig, TerminalSession


class TripToken(CancellationToken):
    """A token that cancels itself on its Nth poll."""

    def __init__(self, trip_after: int):
        super().__init__()
        self.trip_after = trip_after
        self.polls = 0

    def check(self, message: str = 'interrupted') -> None:
        self.polls += 1
        if self.polls >= self.trip_after:
            self.cancel()
        super().check(message)


@pytest.fixture
def sample_tree(tmp_path):
    """
    Build a small tree:

        root/
            .hidden
            a.txt          "alpha"
            b.py           "print('b')"
            link -> a.txt
            sub/
                c.txt      "charlie"
                deep/
                    d.py   ""
            sub_link -> sub
    """
    root = tmp_path / 'root'
    root.mkdir()
    (root / '.hidden').write_text('secret')
    (root / 'a.txt').write_text('alpha')
    (root / 'b.py').write_text("print('b')")
    (root / 'sub').mkdir()
    (root / 'sub' / 'c.txt').write_text('charlie')
    (root / 'sub' / 'deep').mkdir()
    (root / 'sub' / 'deep' / 'd.py').write_text('')
    os.symlink('a.txt', root / 'link')
    os.symlink('sub', root / 'sub_link')
    return root


@pytest.fixture
def trip_token():
    """Factory for tokens that trip after a given number of polls."""
    return TripToken


@pytest.fixture
def make_session(tmp_path):
    """
    Factory for a TerminalSession over StringIO streams.

    The returned session has ``out``/``err`` attributes holding the
    StringIO objects, and reads confirmation answers from ``answers``.
    """
    def factory(initial_dir=None, answers='', confirm=True, home=None):
        stdin = io.StringIO(answers)
        stdout = io.StringIO()
        stderr = io.StringIO()
        config = TerminalConfig(
            initial_dir=str(initial_dir) if initial_dir is not None else str(tmp_path),
            home_dir=str(home) if home is not None else str(tmp_path),
            confirm_destructive=confirm,
            install_signal_handler=False,
        )
        session = TerminalSession(config=config, stdin=stdin, stdout=stdout, stderr=stderr)
        session.out = stdout
        session.err = stderr
        return session

    return factory
