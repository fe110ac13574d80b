#!/usr/bin/env python3
"""
Command surface for fileshell.

FileExplorer holds the session (current directory and the destructive
confirmation flag) and exposes one method per shell command. Methods
resolve their path arguments, call into the engine modules (paths,
permissions, tree_ops, search, lister) and return a CommandResult.
Commands whose output can be long (ls, tree, find, cat) stream it to
the explorer's output as it is produced instead of buffering it.

Failures are raised as ShellError/OSError and turned into diagnostics by
the terminal's CommandExecutor. Per-entry failures of a recursive
operation are collected in CommandResult.errors instead.
"""

import os
import sys
import stat as stat_module
import logging
from dataclasses import dataclass, field
from typing import Any, IO, List, Optional

from . import lister, permissions, tree_ops
from .cancellation import CancellationToken
from .entries import EntryKind, FileSystemEntry
from .errors import Interrupted, NotFound, ShellError, UsageError
from .formatting import human_size, owner_name
from .paths import resolve as resolve_path
from .search import SearchMode, search as search_names

logger = logging.getLogger(__name__)

DEFAULT_TREE_DEPTH = 10


@dataclass
class Session:
    """Mutable state of one shell session; only cd and force change it."""
    cwd: str
    home: str
    confirm_destructive: bool = True


@dataclass
class CommandResult:
    """
    Result of a command execution.

    ``text`` is output still to be printed (streamed output has already
    been written). ``errors`` holds per-entry failures that did not stop
    the command.
    """
    data: Any = None
    text: Optional[str] = None
    exit_code: int = 0
    errors: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return self.text or ''


class FileExplorer:
    """
    Stateful file explorer over the real filesystem.

    Every path argument is resolved against ``session.cwd`` before use.
    """

    COMMANDS = (
        'pwd', 'ls', 'tree', 'cd', 'cp', 'mv', 'rm', 'mkdir', 'touch',
        'cat', 'find', 'chmod', 'info', 'force',
    )

    def __init__(self, session: Session,
                 token: Optional[CancellationToken] = None,
                 stdin: Optional[IO[str]] = None,
                 stdout: Optional[IO[str]] = None,
                 tree_depth: int = DEFAULT_TREE_DEPTH):
        self.session = session
        self.token = token or CancellationToken()
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.tree_depth = tree_depth

    # Helpers

    def _resolve(self, token: Optional[str], must_exist: bool = True,
                 follow_symlinks: bool = True) -> str:
        return resolve_path(token, self.session.cwd, must_exist, follow_symlinks)

    def _emit(self, line: str) -> None:
        self.stdout.write(line + '\n')
        self.stdout.flush()

    def _confirm(self, prompt: str) -> bool:
        """Ask a yes/no question; only an answer starting with y/Y agrees."""
        if not self.session.confirm_destructive:
            return True
        self.stdout.write(f"{prompt} [y/N]: ")
        self.stdout.flush()
        answer = self.stdin.readline()
        return answer[:1] in ('y', 'Y')

    def _report_result(self, report: tree_ops.TreeReport) -> CommandResult:
        errors = report.messages()
        return CommandResult(data=report, exit_code=1 if errors else 0, errors=errors)

    # Navigation

    def pwd(self) -> CommandResult:
        """Print working directory.

        Usage:
            pwd

        Examples:
            pwd                    # Show current directory
        """
        return CommandResult(data=self.session.cwd, text=self.session.cwd)

    def cd(self, path: Optional[str] = None) -> CommandResult:
        """Change the current directory.

        Usage:
            cd [PATH]

        Options:
            PATH                   Directory to change to (default: HOME)

        Examples:
            cd                     # Go to home directory
            cd /usr/share          # Go to /usr/share
            cd ..                  # Go to parent directory
        """
        target = path or self.session.home
        try:
            new_path = self._resolve(target)
        except NotFound:
            raise NotFound(target, f"no such directory: {target}")

        if not os.path.isdir(new_path):
            raise ShellError(f"not a directory: {target}")

        self.session.cwd = new_path
        logger.debug("cwd is now %s", new_path)
        return CommandResult(data=new_path)

    def ls(self, path: Optional[str] = None, all: bool = False,
           long: bool = False, tree: bool = False,
           depth: Optional[int] = None) -> CommandResult:
        """List directory contents.

        Usage:
            ls [-a] [-l] [--tree] [--depth=N] [PATH]

        Options:
            -a, --all              Show hidden entries (starting with .)
            -l, --long             Long format: type, perms, owner, size, mtime
            --tree                 List subdirectories recursively
            --depth=N              Recursion depth for --tree (implies --tree)
            PATH                   Directory or file to list (default: current)

        Examples:
            ls                     # List current directory
            ls -la /etc            # Long format with hidden entries
            ls --tree --depth=2    # Two levels of subdirectories
        """
        if depth is not None:
            tree = True
        target = self._resolve(path, follow_symlinks=False)

        lines = []
        for line in lister.list_entries(
                target, display=path, show_hidden=all, long_format=long,
                tree=tree, depth=self.tree_depth if depth is None else depth,
                token=self.token):
            self._emit(line)
            lines.append(line)
        return CommandResult(data=lines)

    def tree(self, path: Optional[str] = None, all: bool = False,
             long: bool = False, depth: Optional[int] = None) -> CommandResult:
        """Show a directory tree (alias for ls --tree).

        Usage:
            tree [PATH] [-a] [-l] [--depth=N]

        Options:
            -a, --all              Show hidden entries
            -l, --long             Long format
            --depth=N              How many levels of subdirectories to enter
            PATH                   Directory to show (default: current)

        Examples:
            tree                   # Whole tree under the current directory
            tree src --depth=1     # src and one level below it
        """
        return self.ls(path, all=all, long=long, tree=True, depth=depth)

    # File operations

    def cat(self, *paths: str) -> CommandResult:
        """Print file contents.

        Usage:
            cat FILE

        Examples:
            cat notes.txt          # Display notes.txt
        """
        if len(paths) != 1:
            raise UsageError("usage: cat <file>")
        resolved = self._resolve(paths[0])
        with open(resolved, 'rb') as f:
            data = f.read()

        text = data.decode('utf-8', errors='replace')
        self.stdout.write(text)
        if text and not text.endswith('\n'):
            self.stdout.write('\n')
        self.stdout.flush()
        return CommandResult(data=data)

    def touch(self, *paths: str) -> CommandResult:
        """Create empty files or update their timestamps.

        Usage:
            touch FILE...

        Examples:
            touch new.txt          # Create empty file
            touch a.txt b.txt      # Create or refresh several files
        """
        if not paths:
            raise UsageError("usage: touch <file> [more...]")

        errors = []
        for path in paths:
            resolved = self._resolve(path, must_exist=False)
            try:
                if not os.path.exists(resolved):
                    with open(resolved, 'a'):
                        pass
                os.utime(resolved, None)
            except OSError as e:
                errors.append(f"{path}: {e.strerror or e}")
        return CommandResult(exit_code=1 if errors else 0, errors=errors)

    def mkdir(self, *paths: str) -> CommandResult:
        """Create directories, including missing parents.

        Usage:
            mkdir DIRECTORY...

        Examples:
            mkdir build            # Create build/
            mkdir a/b/c docs       # Nested directories are created as needed
        """
        if not paths:
            raise UsageError("usage: mkdir <dir> [more...]")

        errors = []
        for path in paths:
            resolved = self._resolve(path, must_exist=False)
            try:
                os.makedirs(resolved, exist_ok=True)
            except OSError as e:
                errors.append(f"{path}: {e.strerror or e}")
        return CommandResult(exit_code=1 if errors else 0, errors=errors)

    def cp(self, *paths: str) -> CommandResult:
        """Copy files or directories (always recursive).

        Usage:
            cp SOURCE DEST

        Options:
            SOURCE                 File or directory to copy
            DEST                   Target path, or directory to copy into (existing, or ending in /)

        Examples:
            cp a.txt b.txt         # Copy a file
            cp src backup/         # Copy src into backup/src
        """
        if len(paths) != 2:
            raise UsageError("usage: cp <src> <dst>")
        src = self._resolve(paths[0])
        dst = tree_ops.destination_for(src, self._resolve(paths[1], must_exist=False),
                                       into_dir=paths[1].endswith(os.sep))
        return self._report_result(tree_ops.copy(src, dst, self.token))

    def mv(self, *paths: str) -> CommandResult:
        """Move or rename files and directories.

        Usage:
            mv SOURCE DEST

        Options:
            SOURCE                 File or directory to move
            DEST                   New path, or directory to move into (existing, or ending in /)

        Examples:
            mv old.txt new.txt     # Rename a file
            mv report.pdf docs/    # Move into docs/
        """
        if len(paths) != 2:
            raise UsageError("usage: mv <src> <dst>")
        src = self._resolve(paths[0], follow_symlinks=False)
        dst = tree_ops.destination_for(src, self._resolve(paths[1], must_exist=False),
                                       into_dir=paths[1].endswith(os.sep))
        return self._report_result(tree_ops.move(src, dst, self.token))

    def rm(self, *paths: str) -> CommandResult:
        """Remove files or directories recursively.

        Usage:
            rm PATH...

        Options:
            PATH                   File or directory to delete with everything below it

        Examples:
            rm old.log             # Delete a file
            rm build dist          # Delete two trees (asks for each unless force is on)
        """
        if not paths:
            raise UsageError("usage: rm <path> [more...]")

        combined = tree_ops.TreeReport()
        errors = []
        for path in paths:
            try:
                resolved = self._resolve(path, follow_symlinks=False)
            except NotFound as e:
                errors.append(str(e))
                continue

            if not self._confirm(f"Delete '{resolved}' recursively?"):
                logger.debug("deletion of %s declined", resolved)
                continue
            try:
                combined.merge(tree_ops.delete(resolved, self.token))
            except Interrupted as e:
                if e.report is not None:
                    combined.merge(e.report)
                raise Interrupted(str(e), combined, errors) from e

        result = self._report_result(combined)
        result.errors = errors + result.errors
        result.exit_code = 1 if result.errors else 0
        return result

    def chmod(self, *args: str) -> CommandResult:
        """Change permission bits.

        Usage:
            chmod MODE PATH...

        Options:
            MODE                   Three octal digits (755) or clauses like u+x,g-w,a+r
            PATH                   File or directory to modify

        Examples:
            chmod 644 notes.txt    # rw-r--r--
            chmod u+x,go-w run.sh  # Add owner execute, drop group/other write
        """
        if len(args) < 2:
            raise UsageError("usage: chmod <mode> <path> [more...]")
        mode, targets = args[0], args[1:]

        # Reject a malformed mode before touching anything
        permissions.decode(mode, 0)

        errors = []
        for path in targets:
            try:
                resolved = self._resolve(path)
                current = os.stat(resolved).st_mode
                new = permissions.decode(mode, stat_module.S_IMODE(current))
                special = stat_module.S_IMODE(current) & 0o7000
                os.chmod(resolved, int(new) | special)
            except NotFound as e:
                errors.append(str(e))
            except OSError as e:
                errors.append(f"{path}: {e.strerror or e}")
        return CommandResult(exit_code=1 if errors else 0, errors=errors)

    def info(self, path: Optional[str] = None) -> CommandResult:
        """Show metadata for a path.

        Usage:
            info [PATH]

        Options:
            PATH                   Path to inspect (default: current directory)

        Examples:
            info                   # Describe the current directory
            info setup.cfg         # Size, permissions and owner of a file
        """
        resolved = self._resolve(path, follow_symlinks=False)
        entry = FileSystemEntry.from_path(resolved)

        lines = [
            f"Path: {resolved}",
            f"Type: {entry.kind.value}",
        ]
        if entry.kind is EntryKind.REGULAR:
            lines.append(f"Size: {human_size(entry.size)} ({entry.size} bytes)")
        if entry.symlink_target is not None:
            lines.append(f"Target: {entry.symlink_target}")
        lines.append(f"Perms: {permissions.format_permissions(entry.permissions)}")
        lines.append(f"Owner: {owner_name(entry.uid)}")

        return CommandResult(data=entry, text='\n'.join(lines))

    # Search

    def find(self, pattern: str = '', regex: bool = False,
             in_dir: Optional[str] = None,
             depth: Optional[int] = None) -> CommandResult:
        """Search for entries by name.

        Usage:
            find [PATTERN] [-r] [--in=DIR] [--depth=N]

        Options:
            PATTERN                Substring of the name (default: match everything)
            -r, --regex            Treat PATTERN as a regular expression
            --in=DIR               Directory to search (default: current)
            --depth=N              Only descend N levels below DIR

        Examples:
            find .py               # Names containing .py
            find -r '^test_.*\\.py$' --in=tests
        """
        root = self._resolve(in_dir)
        mode = SearchMode.REGEX if regex else SearchMode.SUBSTRING

        found = []
        for match in search_names(root, pattern, mode, depth, self.token):
            self._emit(match)
            found.append(match)
        return CommandResult(data=found)

    # Session

    def force(self, state: Optional[str] = None) -> CommandResult:
        """Toggle confirmation of destructive operations.

        Usage:
            force [on|off]

        Options:
            on                     Delete without asking
            off                    Ask before each rm target (default)

        Examples:
            force                  # Show the current setting
            force on               # Stop asking for confirmation
        """
        if state is None:
            current = 'off' if self.session.confirm_destructive else 'on'
            return CommandResult(data=current, text=f"force is {current}")
        if state == 'on':
            self.session.confirm_destructive = False
        elif state == 'off':
            self.session.confirm_destructive = True
        else:
            raise UsageError("usage: force on|off")
        return CommandResult(data=state)
