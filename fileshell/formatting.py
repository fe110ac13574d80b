#!/usr/bin/env python3
"""Display helpers: sizes, timestamps, owners and long-format lines."""

import pwd
from datetime import datetime

from .entries import EntryKind, FileSystemEntry
from .permissions import format_permissions

SIZE_UNITS = ('B', 'KB', 'MB', 'GB', 'TB')


def human_size(size: int) -> str:
    """Format a byte count as ``512 B`` or ``1.5 KB``."""
    value = float(size)
    unit = 0
    while value >= 1024.0 and unit < len(SIZE_UNITS) - 1:
        value /= 1024.0
        unit += 1
    if unit == 0:
        return f"{int(value)} {SIZE_UNITS[0]}"
    return f"{value:.1f} {SIZE_UNITS[unit]}"


def time_string(timestamp: float) -> str:
    """Format an mtime the way long listings show it."""
    return datetime.fromtimestamp(timestamp).strftime('%Y-%m-%d %H:%M')


def owner_name(uid: int) -> str:
    """Look up a user name, falling back to the numeric id."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def long_line(entry: FileSystemEntry, name: str) -> str:
    """Render one ``ls -l`` line."""
    size = human_size(entry.size) if entry.kind is EntryKind.REGULAR else '-'
    line = (f"{entry.kind.tag}{format_permissions(entry.permissions)} "
            f"{owner_name(entry.uid):>8} {size:>10} "
            f"{time_string(entry.modified_time)}  {name}")
    if entry.symlink_target is not None:
        line += f" -> {entry.symlink_target}"
    return line
