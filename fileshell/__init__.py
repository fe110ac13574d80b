"""
fileshell - An interactive shell for exploring and changing a local filesystem

This package provides a small command shell over the real filesystem:
navigation, flat and tree listings, recursive copy/move/delete that keep
symlinks intact, name search and chmod with octal or symbolic modes. Long
operations can be interrupted with Ctrl+C.
"""

__version__ = "0.1.0"

from .errors import (
    ShellError,
    NotFound,
    InvalidModeSpec,
    UsageError,
    Interrupted,
)

from .cancellation import CancellationToken

from .permissions import (
    Perm,
    decode,
    format_permissions,
)

from .entries import (
    EntryKind,
    FileSystemEntry,
    walk,
)

from .tree_ops import (
    TreeReport,
    copy,
    move,
    delete,
)

from .search import SearchMode

from .explorer import (
    FileExplorer,
    Session,
    CommandResult,
)

from .terminal import (
    TerminalSession,
    TerminalConfig,
    CommandExecutor,
    main,
)

from .command_parser import (
    Command,
    CommandParser,
)

__all__ = [
    # Errors
    "ShellError",
    "NotFound",
    "InvalidModeSpec",
    "UsageError",
    "Interrupted",

    # Engine
    "CancellationToken",
    "Perm",
    "decode",
    "format_permissions",
    "EntryKind",
    "FileSystemEntry",
    "walk",
    "TreeReport",
    "copy",
    "move",
    "delete",
    "SearchMode",

    # Command surface
    "FileExplorer",
    "Session",
    "CommandResult",

    # Terminal
    "TerminalSession",
    "TerminalConfig",
    "CommandExecutor",
    "main",

    # Command parser
    "Command",
    "CommandParser",

    # Version info
    "__version__",
]
