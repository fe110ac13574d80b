#!/usr/bin/env python3
"""
Command parser for the fileshell terminal.

Turns one input line into a Command: a name, plain arguments and parsed
flags. Parsing only; nothing here touches the filesystem.

Flags are recognised only for commands listed in FLAG_MAPPINGS. Every
other command receives its tokens untouched, so a chmod mode such as
``u-x`` or a file literally named ``-v`` reaches the command as written.
"""

import shlex
from typing import List, Dict, Tuple, Union
from dataclasses import dataclass


FlagValue = Union[bool, str]


@dataclass
class Command:
    """
    A single command with its arguments.

    Each command maps to a method on FileExplorer.
    """
    name: str
    args: List[str]
    flags: Dict[str, FlagValue]  # Parsed flags
    raw_args: List[str]  # Original arguments before flag parsing

    def __str__(self) -> str:
        parts = [self.name]
        if self.flags:
            for key, value in self.flags.items():
                if value is True:
                    parts.append(f"--{key}")
                else:
                    parts.append(f"--{key}={value}")
        parts.extend(self.args)
        return ' '.join(parts)


class CommandParser:
    """
    Parser for fileshell command lines.

    Handles:
    - Quoting and escaping (via shlex)
    - Short flags: -a, -la
    - Long flags: --tree, --depth=3
    - End of flags marker (--)
    """

    # Commands that take options, with their short -> long names
    FLAG_MAPPINGS = {
        'ls': {
            'a': 'all',
            'l': 'long',
        },
        'tree': {
            'a': 'all',
            'l': 'long',
        },
        'find': {
            'r': 'regex',
        },
    }

    def tokenize(self, command_line: str) -> List[str]:
        """Split a line into tokens, respecting quotes."""
        try:
            return shlex.split(command_line)
        except ValueError:
            # Handle unclosed quotes gracefully
            return command_line.split()

    def parse(self, command_line: str) -> Command:
        """
        Parse a command line into a Command.

        An empty line yields a Command with an empty name.
        """
        tokens = self.tokenize(command_line or '')
        if not tokens:
            return Command(name='', args=[], flags={}, raw_args=[])

        cmd_name = tokens[0]
        raw_args = tokens[1:]

        if cmd_name in self.FLAG_MAPPINGS:
            flags, args = self._parse_flags(cmd_name, raw_args)
        else:
            flags, args = {}, list(raw_args)

        return Command(name=cmd_name, args=args, flags=flags, raw_args=raw_args)

    def _parse_flags(self, cmd_name: str, args: List[str]) -> Tuple[Dict[str, FlagValue], List[str]]:
        """
        Parse flags from arguments.

        Returns (flags_dict, remaining_args)
        """
        flags = {}
        remaining = []
        flag_mappings = self.FLAG_MAPPINGS.get(cmd_name, {})

        i = 0
        while i < len(args):
            arg = args[i]

            if arg == '--':
                # End of flags marker
                remaining.extend(args[i + 1:])
                break
            elif arg.startswith('--'):
                # Long flag
                if '=' in arg:
                    key, value = arg[2:].split('=', 1)
                    flags[key] = value
                else:
                    flags[arg[2:]] = True
            elif arg.startswith('-') and len(arg) > 1:
                # Short flag(s); unknown letters keep their own name
                for char in arg[1:]:
                    flags[flag_mappings.get(char, char)] = True
            else:
                remaining.append(arg)
            i += 1

        return flags, remaining
