#!/usr/bin/env python3
"""
Recursive copy, move and delete.

All three share the ``entries.walk`` traversal core and the same error
policy: a failure on one entry is recorded in the TreeReport and the walk
carries on; only cancellation stops a walk early, by raising Interrupted
with the partial report attached.

Symlinks are never followed: copy recreates them with the same target
text and delete unlinks them.
"""

import os
import errno
import shutil
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .cancellation import CancellationToken, check
from .entries import EntryKind, WalkItem, kind_of_mode, walk
from .errors import Interrupted, NotFound, UsageError
from .paths import is_within

logger = logging.getLogger(__name__)


@dataclass
class TreeReport:
    """Outcome of a recursive operation."""
    entries: int = 0
    failures: List[Tuple[str, OSError]] = field(default_factory=list)
    renamed: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures

    def record_failure(self, path: str, error: OSError) -> None:
        logger.debug("failed on %s: %s", path, error)
        self.failures.append((path, error))

    def merge(self, other: 'TreeReport') -> None:
        self.entries += other.entries
        self.failures.extend(other.failures)

    def messages(self) -> List[str]:
        """One "path: reason" line per failure."""
        return [f"{path}: {error.strerror or error}" for path, error in self.failures]


def _lkind(path: str) -> Optional[EntryKind]:
    try:
        return kind_of_mode(os.lstat(path).st_mode)
    except FileNotFoundError:
        return None


def destination_for(src: str, dst: str, into_dir: bool = False) -> str:
    """
    Place ``src`` inside ``dst`` when ``dst`` is an existing directory.

    ``into_dir`` forces the same placement for a directory that does not
    exist yet (the user wrote ``dst`` with a trailing slash).
    """
    if into_dir or os.path.isdir(dst):
        return os.path.join(dst, os.path.basename(src))
    return dst


def _check_not_into_itself(src: str, dst: str, verb: str) -> None:
    if os.path.isdir(src) and not os.path.islink(src) and is_within(dst, src):
        raise UsageError(f"cannot {verb} '{src}' into itself, '{dst}'")


# Copy

def _copy_symlink(src: str, dst: str) -> None:
    target = os.readlink(src)
    existing = _lkind(dst)
    if existing is EntryKind.DIRECTORY:
        raise IsADirectoryError(errno.EISDIR, 'cannot overwrite directory with symlink', dst)
    if existing is not None:
        os.unlink(dst)
    os.symlink(target, dst)


def _copy_regular(src: str, dst: str) -> None:
    shutil.copyfile(src, dst)
    shutil.copymode(src, dst)


def _copy_item(item: WalkItem, out: str) -> None:
    if item.kind is EntryKind.DIRECTORY:
        os.makedirs(out, exist_ok=True)
        return

    os.makedirs(os.path.dirname(out), exist_ok=True)
    if item.kind is EntryKind.SYMLINK:
        _copy_symlink(item.path, out)
    elif item.kind is EntryKind.REGULAR:
        _copy_regular(item.path, out)
    else:
        raise OSError(errno.EINVAL, 'unsupported file type', item.path)


def copy(src: str, dst: str, token: Optional[CancellationToken] = None) -> TreeReport:
    """
    Copy a file or directory tree from ``src`` to ``dst``.

    Directories are recreated, symlinks are recreated with the same
    (unresolved) target text, regular files are content-copied over any
    existing file. Missing parent directories of ``dst`` are created.

    Raises:
        NotFound: if ``src`` does not exist.
        UsageError: if a directory would be copied into its own subtree.
        Interrupted: if the token is set mid-walk.
    """
    kind = _lkind(src)
    if kind is None:
        raise NotFound(src)
    _check_not_into_itself(src, dst, 'copy')

    report = TreeReport()

    if kind is not EntryKind.DIRECTORY:
        check(token)
        item = WalkItem(path=src, relpath=os.path.basename(src),
                        name=os.path.basename(src), kind=kind, depth=0)
        try:
            _copy_item(item, dst)
        except OSError as e:
            report.record_failure(src, e)
        report.entries += 1
        return report

    try:
        os.makedirs(dst, exist_ok=True)
    except OSError as e:
        report.record_failure(dst, e)
        return report
    report.entries += 1

    try:
        for item in walk(src, token, on_error=report.record_failure):
            try:
                _copy_item(item, os.path.join(dst, item.relpath))
            except OSError as e:
                report.record_failure(item.path, e)
            report.entries += 1
    except Interrupted as e:
        raise Interrupted(f"interrupted after {report.entries} entries", report) from e

    return report


# Delete

def _remove_item(path: str, kind: EntryKind) -> None:
    if kind is EntryKind.DIRECTORY:
        os.rmdir(path)
    else:
        os.unlink(path)


def delete(target: str, token: Optional[CancellationToken] = None) -> TreeReport:
    """
    Remove ``target`` and everything beneath it.

    Children are removed before their parent. A directory whose child
    could not be removed fails in turn and both failures are reported.

    Raises:
        NotFound: if ``target`` does not exist.
        Interrupted: if the token is set mid-walk.
    """
    kind = _lkind(target)
    if kind is None:
        raise NotFound(target)

    report = TreeReport()

    if kind is EntryKind.DIRECTORY:
        try:
            for item in walk(target, token, topdown=False, on_error=report.record_failure):
                try:
                    _remove_item(item.path, item.kind)
                except OSError as e:
                    report.record_failure(item.path, e)
                report.entries += 1
        except Interrupted as e:
            raise Interrupted(f"interrupted after {report.entries} entries", report) from e
    else:
        check(token)

    try:
        _remove_item(target, kind)
    except OSError as e:
        report.record_failure(target, e)
    report.entries += 1
    return report


# Move

def move(src: str, dst: str, token: Optional[CancellationToken] = None) -> TreeReport:
    """
    Move ``src`` to ``dst``.

    A plain rename is tried first. If it fails (for example across
    devices) the tree is copied and the source deleted. That fallback is
    not transactional: the source is only deleted when the copy reported
    no failures, and nothing is rolled back, so a failed delete leaves
    both trees in place with the failures in the report.

    Raises:
        NotFound: if ``src`` does not exist.
        UsageError: if a directory would be moved into its own subtree.
        Interrupted: if the token is set during the fallback.
    """
    if _lkind(src) is None:
        raise NotFound(src)
    _check_not_into_itself(src, dst, 'move')

    parent = os.path.dirname(dst)
    if parent:
        os.makedirs(parent, exist_ok=True)

    try:
        os.rename(src, dst)
    except OSError as e:
        logger.debug("rename %s -> %s failed (%s), falling back to copy", src, dst, e)
    else:
        return TreeReport(entries=1, renamed=True)

    report = copy(src, dst, token)
    if not report.ok:
        logger.debug("copy of %s had failures, keeping source", src)
        return report

    try:
        report.merge(delete(src, token))
    except Interrupted as e:
        if e.report is not None:
            report.merge(e.report)
        raise Interrupted(str(e), report) from e
    return report
