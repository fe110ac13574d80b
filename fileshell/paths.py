#!/usr/bin/env python3
"""
Path resolution against the session's current directory.

Every command turns its path tokens into canonical absolute paths here
before touching the filesystem.
"""

import os
import logging
from typing import Optional

from .errors import NotFound

logger = logging.getLogger(__name__)


def join(token: Optional[str], base: str) -> str:
    """Join a token onto base without canonicalizing."""
    if not token:
        return base
    token = os.path.expanduser(token)
    if os.path.isabs(token):
        return token
    return os.path.join(base, token)


def canonicalize(path: str, follow_symlinks: bool = True) -> str:
    """
    Collapse ``.``/``..`` and resolve symlinks along ``path``.

    Components that do not exist yet are kept as written, so a future
    destination canonicalizes fine. With ``follow_symlinks=False`` the
    final component is left unresolved (only its parent chain is
    resolved), unless it is ``.`` or ``..``.
    """
    if follow_symlinks:
        return os.path.realpath(path)

    stripped = path.rstrip(os.sep) or os.sep
    parent, leaf = os.path.split(stripped)
    if leaf in ('', '.', '..'):
        return os.path.realpath(path)
    return os.path.join(os.path.realpath(parent or os.sep), leaf)


def resolve(token: Optional[str], base: str,
            must_exist: bool = True, follow_symlinks: bool = True) -> str:
    """
    Resolve a user supplied path token to a canonical absolute path.

    Args:
        token: path as typed; absent or empty means ``base``
        base: the current directory (already absolute)
        must_exist: raise NotFound if the result does not exist
        follow_symlinks: resolve a symlink in the final component too

    Returns:
        The canonical absolute path.

    Raises:
        NotFound: if ``must_exist`` and nothing is at the path.
    """
    resolved = canonicalize(join(token, base), follow_symlinks)
    logger.debug("resolved %r against %s -> %s", token, base, resolved)

    if must_exist:
        exists = os.path.exists if follow_symlinks else os.path.lexists
        if not exists(resolved):
            raise NotFound(token or base)
    return resolved


def is_within(path: str, root: str) -> bool:
    """Check whether ``path`` is ``root`` or lies beneath it."""
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        return False
