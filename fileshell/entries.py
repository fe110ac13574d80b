#!/usr/bin/env python3
"""
Filesystem entries and the shared traversal core.

FileSystemEntry is a transient snapshot of one path, built with lstat so
symlinks describe themselves rather than their targets. ``walk`` is the
single recursive traversal used by copy, move, delete, find and the tree
listing; it sorts each directory by name, never descends through a
symlink, and polls the cancellation token at every entry.
"""

import os
import logging
import stat as stat_module
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, Optional

from .cancellation import CancellationToken, check
from .permissions import Perm

logger = logging.getLogger(__name__)


class EntryKind(Enum):
    """What a path is, without following symlinks."""
    REGULAR = 'file'
    DIRECTORY = 'directory'
    SYMLINK = 'symlink'
    OTHER = 'other'

    @property
    def tag(self) -> str:
        """Single character used by long listings."""
        return {
            EntryKind.REGULAR: '-',
            EntryKind.DIRECTORY: 'd',
            EntryKind.SYMLINK: 'l',
            EntryKind.OTHER: '?',
        }[self]


def kind_of_mode(mode: int) -> EntryKind:
    """Classify an st_mode value."""
    if stat_module.S_ISLNK(mode):
        return EntryKind.SYMLINK
    if stat_module.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat_module.S_ISREG(mode):
        return EntryKind.REGULAR
    return EntryKind.OTHER


@dataclass(frozen=True)
class FileSystemEntry:
    """Snapshot of a single path taken during traversal."""
    path: str
    name: str
    kind: EntryKind
    permissions: Perm
    modified_time: float
    uid: int
    size: Optional[int] = None
    symlink_target: Optional[str] = None

    @classmethod
    def from_path(cls, path: str, name: Optional[str] = None) -> 'FileSystemEntry':
        """Build an entry with lstat; raises OSError if the path is gone."""
        st = os.lstat(path)
        kind = kind_of_mode(st.st_mode)
        target = os.readlink(path) if kind is EntryKind.SYMLINK else None
        return cls(
            path=path,
            name=name if name is not None else (os.path.basename(path) or path),
            kind=kind,
            permissions=Perm(stat_module.S_IMODE(st.st_mode) & Perm.ALL),
            modified_time=st.st_mtime,
            uid=st.st_uid,
            size=st.st_size if kind is EntryKind.REGULAR else None,
            symlink_target=target,
        )


@dataclass(frozen=True)
class WalkItem:
    """One step of a walk: where we are relative to the walk root."""
    path: str
    relpath: str
    name: str
    kind: EntryKind
    depth: int

    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


def _entry_kind(entry: os.DirEntry) -> EntryKind:
    try:
        if entry.is_symlink():
            return EntryKind.SYMLINK
        if entry.is_dir(follow_symlinks=False):
            return EntryKind.DIRECTORY
        if entry.is_file(follow_symlinks=False):
            return EntryKind.REGULAR
    except OSError as e:
        logger.debug("cannot classify %s: %s", entry.path, e)
    return EntryKind.OTHER


def list_dir(path: str) -> List[os.DirEntry]:
    """Return the entries of a directory sorted by name."""
    with os.scandir(path) as it:
        entries = list(it)
    entries.sort(key=lambda e: e.name)
    return entries


def walk(root: str,
         token: Optional[CancellationToken] = None,
         max_depth: Optional[int] = None,
         topdown: bool = True,
         on_error: Optional[Callable[[str, OSError], None]] = None,
         exclude: Optional[Callable[[str], bool]] = None) -> Iterator[WalkItem]:
    """
    Recursively walk ``root``, yielding every entry beneath it.

    Args:
        root: directory to walk (not itself yielded)
        token: polled before each entry is yielded
        max_depth: deepest level to yield; children of root are depth 1
        topdown: yield directories before (True) or after (False) their
            contents; delete needs the latter
        on_error: called with (path, error) for unreadable directories,
            which are then skipped
        exclude: names for which this returns True are neither yielded
            nor descended into

    Raises:
        Interrupted: when the token is set mid-walk.
    """
    def visit(directory: str, reldir: str, depth: int) -> Iterator[WalkItem]:
        try:
            entries = list_dir(directory)
        except OSError as e:
            logger.debug("skipping unreadable directory %s: %s", directory, e)
            if on_error is not None:
                on_error(directory, e)
            return

        for entry in entries:
            check(token)
            if exclude is not None and exclude(entry.name):
                continue
            relpath = os.path.join(reldir, entry.name) if reldir else entry.name
            item = WalkItem(
                path=entry.path,
                relpath=relpath,
                name=entry.name,
                kind=_entry_kind(entry),
                depth=depth,
            )
            if topdown:
                yield item
            if item.is_dir() and (max_depth is None or depth < max_depth):
                yield from visit(entry.path, relpath, depth + 1)
            if not topdown:
                yield item

    yield from visit(root, '', 1)
