#!/usr/bin/env python3
"""
Terminal front end for fileshell.

This module provides the interactive loop: it reads a line, parses it
into a Command, dispatches it to FileExplorer and prints the outcome.
CommandExecutor is the single error boundary: any failure of a command
becomes one diagnostic line prefixed with the command name, and the
session carries on.

Design Principles:
- All filesystem work goes through FileExplorer
- Clean separation between parsing and execution
- Session state lives in one explicit Session value
"""

import os
import sys
import logging
import argparse
from contextlib import nullcontext
from typing import Optional, List, Dict, Any, Tuple, IO
from dataclasses import dataclass, field

from .command_parser import CommandParser, Command
from .cancellation import CancellationToken, sigint_routed_to
from .errors import Interrupted, ShellError, UsageError
from .explorer import CommandResult, FileExplorer, Session, DEFAULT_TREE_DEPTH
from .paths import resolve

logger = logging.getLogger(__name__)


def _default_home() -> str:
    return os.environ.get('HOME') or os.getcwd()


@dataclass
class TerminalConfig:
    """Configuration for terminal session."""
    initial_dir: Optional[str] = None  # None means the process working directory
    home_dir: str = field(default_factory=_default_home)
    prompt_format: str = '[{cwd}]$ '
    confirm_destructive: bool = True
    tree_depth: int = DEFAULT_TREE_DEPTH
    install_signal_handler: bool = True


# Options each flag-taking command accepts, by long name
ALLOWED_FLAGS = {
    'ls': {'all', 'long', 'tree', 'depth'},
    'tree': {'all', 'long', 'depth'},
    'find': {'regex', 'in', 'depth'},
}

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130
EXIT_NOT_FOUND = 127


class CommandExecutor:
    """
    Executes parsed commands by translating them to FileExplorer calls.

    Flags and arguments are turned into method arguments here; every
    exception a command raises is caught here and reported on stderr.
    """

    def __init__(self, explorer: FileExplorer, stdout: Optional[IO[str]] = None,
                 stderr: Optional[IO[str]] = None):
        """Initialize with a FileExplorer instance."""
        self.explorer = explorer
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

    def _error(self, name: str, message: str) -> None:
        self.stderr.write(f"{name}: {message}\n")
        self.stderr.flush()

    def _print(self, text: str) -> None:
        self.stdout.write(text if text.endswith('\n') else text + '\n')
        self.stdout.flush()

    @staticmethod
    def _describe(error: Exception) -> str:
        """Render an OSError as 'path: reason', anything else as its message."""
        if isinstance(error, ShellError) or not isinstance(error, OSError):
            return str(error)
        if error.strerror and error.filename:
            return f"{error.filename}: {error.strerror}"
        return error.strerror or str(error)

    def execute(self, command: Command) -> int:
        """Execute a single command and return its exit code."""
        if not command.name:
            return EXIT_OK

        if command.name == 'help':
            return self._show_help(command.args[0] if command.args else None)

        method = self._get_method(command.name)
        if method is None:
            self._error(command.name, "command not found (type 'help')")
            return EXIT_NOT_FOUND

        if '--help' in command.raw_args:
            return self._show_help(command.name)

        try:
            args, kwargs = self._prepare_arguments(command)
            result = method(*args, **kwargs)
        except UsageError as e:
            self._error(command.name, str(e))
            return EXIT_USAGE
        except Interrupted as e:
            for line in e.errors:
                self._error(command.name, line)
            if e.report is not None:
                for line in e.report.messages():
                    self._error(command.name, line)
            self._error(command.name, str(e))
            return EXIT_INTERRUPTED
        except (ShellError, OSError) as e:
            self._error(command.name, self._describe(e))
            return EXIT_FAILURE

        return self._finish(command.name, result)

    def _finish(self, name: str, result: CommandResult) -> int:
        if result.text:
            self._print(result.text)
        for error in result.errors:
            self._error(name, error)
        return result.exit_code

    def _get_method(self, command_name: str):
        """Get the explorer method for a command name."""
        if command_name not in FileExplorer.COMMANDS:
            return None
        return getattr(self.explorer, command_name)

    def _int_flag(self, command: Command, key: str, minimum: int) -> Optional[int]:
        value = command.flags.get(key)
        if value is None:
            return None
        if value is True:
            raise UsageError(f"--{key} expects a number, as --{key}=N")
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise UsageError(f"--{key} expects a number, got '{value}'")
        if number < minimum:
            raise UsageError(f"--{key} must be at least {minimum}")
        return number

    def _prepare_arguments(self, command: Command) -> Tuple[List, Dict[str, Any]]:
        """Prepare arguments and keyword arguments for method call."""
        allowed = ALLOWED_FLAGS.get(command.name, set())
        for key in command.flags:
            if key not in allowed:
                raise UsageError(f"unknown option '{key}'")

        args = []
        kwargs = {}

        if command.name in ('ls', 'tree'):
            if len(command.args) > 1:
                raise UsageError(f"usage: {command.name} [-a] [-l] [--depth=N] [path]")
            if command.args:
                args.append(command.args[0])
            kwargs['all'] = command.flags.get('all') is True
            kwargs['long'] = command.flags.get('long') is True
            kwargs['depth'] = self._int_flag(command, 'depth', 0)
            if command.name == 'ls':
                kwargs['tree'] = command.flags.get('tree') is True

        elif command.name == 'find':
            if len(command.args) > 1:
                raise UsageError("usage: find [pattern] [-r] [--in=dir] [--depth=N]")
            if command.args:
                args.append(command.args[0])
            kwargs['regex'] = command.flags.get('regex') is True
            in_dir = command.flags.get('in')
            if in_dir is True:
                raise UsageError("--in expects a directory, as --in=DIR")
            kwargs['in_dir'] = in_dir
            kwargs['depth'] = self._int_flag(command, 'depth', 1)

        elif command.name in ('pwd',):
            if command.args:
                raise UsageError("usage: pwd")

        elif command.name in ('cd', 'info', 'force'):
            if len(command.args) > 1:
                raise UsageError(f"usage: {command.name} [arg]")
            args.extend(command.args)

        else:
            # Default: pass all arguments
            args.extend(command.args)

        return args, kwargs

    # Help

    def _extract_docstring_sections(self, docstring: str) -> dict:
        """Extract structured sections from a docstring."""
        if not docstring:
            return {}

        lines = docstring.strip().split('\n')
        sections = {
            'description': lines[0].strip(),
            'usage': '',
            'options': [],
            'examples': []
        }

        current_section = None
        for line in lines[1:]:
            line = line.strip()
            if line.startswith('Usage:'):
                current_section = 'usage'
            elif line.startswith('Options:'):
                current_section = 'options'
            elif line.startswith('Examples:'):
                current_section = 'examples'
            elif line and current_section == 'usage':
                sections['usage'] = line
            elif line and current_section:
                sections[current_section].append(line)

        return sections

    def _show_help(self, command: Optional[str] = None) -> int:
        """Show help for one command or the command summary."""
        if command is None:
            self._print(self._all_commands_help())
            return EXIT_OK

        if command in ('exit', 'quit'):
            self._print("exit/quit - Leave the shell\n\nUsage:\n    exit")
            return EXIT_OK
        if command == 'help':
            self._print("help - Show this help\n\nUsage:\n    help [COMMAND]")
            return EXIT_OK

        method = self._get_method(command)
        if method is None:
            self._error('help', f"no help available for '{command}'")
            return EXIT_FAILURE

        sections = self._extract_docstring_sections(method.__doc__)
        help_lines = [f"{command} - {sections['description']}", ""]
        if sections['usage']:
            help_lines += ["Usage:", f"    {sections['usage']}", ""]
        if sections['options']:
            help_lines.append("Options:")
            help_lines += [f"    {opt}" for opt in sections['options']]
            help_lines.append("")
        if sections['examples']:
            help_lines.append("Examples:")
            help_lines += [f"    {ex}" for ex in sections['examples']]

        self._print('\n'.join(help_lines))
        return EXIT_OK

    def _all_commands_help(self) -> str:
        """List every command with its one-line description."""
        commands = {}
        for name in FileExplorer.COMMANDS:
            doc = getattr(self.explorer, name).__doc__ or ''
            commands[name] = doc.strip().split('\n')[0]
        commands['help'] = 'Show this help, or help COMMAND for details'
        commands['exit'] = 'Leave the shell (also: quit)'

        categories = {
            'NAVIGATION': ['pwd', 'cd', 'ls', 'tree'],
            'FILE OPERATIONS': ['cat', 'touch', 'mkdir', 'cp', 'mv', 'rm', 'chmod', 'info'],
            'SEARCH': ['find'],
            'SESSION': ['force', 'help', 'exit'],
        }

        help_lines = ["Commands", "=" * 40, ""]
        for category, cmd_list in categories.items():
            help_lines.append(f"{category}:")
            for cmd in cmd_list:
                help_lines.append(f"  {cmd:<15} {commands[cmd]}")
            help_lines.append("")
        help_lines.append("Ctrl+C interrupts long operations.")
        return '\n'.join(help_lines)


class TerminalSession:
    """
    Main terminal session manager.

    Owns the cancellation token and the REPL loop; builds the Session,
    FileExplorer and CommandExecutor from a TerminalConfig.
    """

    def __init__(self, config: Optional[TerminalConfig] = None,
                 stdin: Optional[IO[str]] = None,
                 stdout: Optional[IO[str]] = None,
                 stderr: Optional[IO[str]] = None):
        """
        Initialize terminal session.

        Raises:
            NotFound: if the initial directory cannot be resolved.
            ShellError: if it is not a directory.
        """
        self.config = config or TerminalConfig()
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

        cwd = resolve(self.config.initial_dir, os.getcwd())
        if not os.path.isdir(cwd):
            raise ShellError(f"not a directory: {cwd}")

        self.session = Session(
            cwd=cwd,
            home=self.config.home_dir,
            confirm_destructive=self.config.confirm_destructive,
        )
        self.token = CancellationToken()
        self.parser = CommandParser()
        self.explorer = FileExplorer(self.session, self.token, self.stdin,
                                     self.stdout, self.config.tree_depth)
        self.executor = CommandExecutor(self.explorer, self.stdout, self.stderr)
        self.running = False
        self._busy = False

    def get_prompt(self) -> str:
        """Generate the command prompt."""
        return self.config.prompt_format.format(cwd=self.session.cwd)

    def execute_command(self, command_line: str) -> Optional[int]:
        """
        Execute a command line and return its exit code.

        Returns None for exit commands.
        """
        command = self.parser.parse(command_line)
        if command.name in ('exit', 'quit'):
            return None

        self.token.clear()
        self._busy = True
        try:
            return self.executor.execute(command)
        finally:
            self._busy = False

    def _sigint_scope(self):
        """Route Ctrl+C to the token while a command runs, if configured."""
        if self.config.install_signal_handler:
            return sigint_routed_to(self.token, lambda: self._busy)
        return nullcontext()

    def run_command(self, command_line: str) -> int:
        """
        Run a single command and return its exit code.

        This method is useful for non-interactive use. Ctrl+C during the
        command interrupts it with exit code 130.
        """
        with self._sigint_scope():
            code = self.execute_command(command_line)
        return code if code is not None else EXIT_OK

    def _report_interrupt(self) -> None:
        if self.token.clear():
            self.stdout.write("\nInterrupted. Type 'exit' to quit.\n")

    def _read_line(self) -> str:
        if self.stdin is sys.stdin:
            return input(self.get_prompt())
        self.stdout.write(self.get_prompt())
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            raise EOFError
        return line.rstrip('\n')

    def run_interactive(self) -> int:
        """Run the interactive REPL loop until exit or end of input."""
        self.running = True

        self.stdout.write(f"File explorer, starting in {self.session.cwd}\n")
        self.stdout.write("Type 'help' for commands. Ctrl+C to interrupt long ops.\n")

        try:
            with self._sigint_scope():
                while self.running:
                    self._report_interrupt()
                    try:
                        command_line = self._read_line()
                    except KeyboardInterrupt:
                        self.stdout.write("^C\n")
                        continue
                    except EOFError:
                        self.stdout.write("\n")
                        break

                    if self.execute_command(command_line) is None:
                        break
        finally:
            self.running = False

        return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the file explorer."""
    parser = argparse.ArgumentParser(description='Interactive file explorer shell')
    parser.add_argument('directory', nargs='?', help='Start directory (default: current)')
    parser.add_argument('-c', '--command', help='Execute command and exit')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log debug output to stderr')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s: %(message)s',
        stream=sys.stderr,
    )

    config = TerminalConfig(initial_dir=args.directory)
    try:
        session = TerminalSession(config=config)
    except (ShellError, OSError) as e:
        logger.debug("startup failed: %s", e)
        sys.stderr.write(f"Cannot access start directory: {args.directory or '.'}\n")
        return 1

    if args.command:
        return session.run_command(args.command)
    return session.run_interactive()


if __name__ == '__main__':
    sys.exit(main())
