#!/usr/bin/env python3
"""
Flat and tree directory listings.

Listings are generators of display lines. Directory contents are always
sorted by filename; names starting with ``.`` are hidden unless asked
for.
"""

import os
from typing import Iterator, Optional

from .cancellation import CancellationToken
from .entries import FileSystemEntry, list_dir, walk
from .formatting import long_line


def is_hidden(name: str) -> bool:
    return name.startswith('.')


def _render(path: str, name: str, long_format: bool) -> str:
    if not long_format:
        return name
    return long_line(FileSystemEntry.from_path(path, name), name)


def list_flat(target: str, show_hidden: bool = False,
              long_format: bool = False) -> Iterator[str]:
    """List a directory's immediate children."""
    for entry in list_dir(target):
        if not show_hidden and is_hidden(entry.name):
            continue
        yield _render(entry.path, entry.name, long_format)


def list_tree(target: str, display: str, depth: int,
              show_hidden: bool = False, long_format: bool = False,
              token: Optional[CancellationToken] = None) -> Iterator[str]:
    """
    List a directory recursively.

    Each line is the entry's path under ``display`` (the prefix shown for
    ``target`` itself). ``depth`` 0 shows the children but enters no
    subdirectory; each further level enters one more.
    """
    prefix = display.rstrip('/') if display != '/' else ''
    exclude = None if show_hidden else is_hidden
    for item in walk(target, token, max_depth=depth + 1, exclude=exclude):
        yield _render(item.path, f"{prefix}/{item.relpath}", long_format)


def list_entries(target: str, display: Optional[str] = None,
                 show_hidden: bool = False, long_format: bool = False,
                 tree: bool = False, depth: int = 10,
                 token: Optional[CancellationToken] = None) -> Iterator[str]:
    """
    Produce the listing for ``target``.

    A non-directory yields the single line describing it. Otherwise the
    flat or tree listing is produced.
    """
    if not os.path.isdir(target):
        name = display or os.path.basename(target)
        yield _render(target, name, long_format)
        return

    if tree:
        yield from list_tree(target, display or '.', depth, show_hidden,
                             long_format, token)
    else:
        yield from list_flat(target, show_hidden, long_format)
