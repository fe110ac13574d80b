#!/usr/bin/env python3
"""
Filename search over a directory tree.

``search`` is a lazy generator: matches are yielded in walk order as they
are found, so the caller can print them immediately. An interrupt raises
Interrupted out of the generator instead of ending the sequence quietly.
"""

import re
import logging
from enum import Enum
from typing import Callable, Iterator, Optional

from .cancellation import CancellationToken
from .entries import walk
from .errors import UsageError

logger = logging.getLogger(__name__)


class SearchMode(Enum):
    """How a find pattern is matched against filenames."""
    SUBSTRING = 'substring'
    REGEX = 'regex'


def make_matcher(pattern: str, mode: SearchMode) -> Callable[[str], bool]:
    """Build a filename predicate; regexes are compiled once, here."""
    if mode is SearchMode.REGEX:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise UsageError(f"invalid regex '{pattern}': {e}") from e
        return lambda name: regex.search(name) is not None
    return lambda name: pattern in name


def search(root: str, pattern: str = '',
           mode: SearchMode = SearchMode.SUBSTRING,
           max_depth: Optional[int] = None,
           token: Optional[CancellationToken] = None) -> Iterator[str]:
    """
    Yield the paths under ``root`` whose filename matches ``pattern``.

    Only the final path component is matched, never the full path. The
    empty substring matches everything. Unreadable directories are
    skipped.

    Raises:
        UsageError: for an invalid regex (before anything is yielded).
        Interrupted: when the token is set mid-walk.
    """
    matches = make_matcher(pattern, mode)
    return _search(root, matches, max_depth, token)


def _search(root, matches, max_depth, token) -> Iterator[str]:
    for item in walk(root, token, max_depth=max_depth):
        if matches(item.name):
            yield item.path
