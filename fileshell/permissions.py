#!/usr/bin/env python3
"""
Permission codec for chmod.

Two syntaxes are accepted:

- Octal: exactly three digits 0-7 (``755``). Replaces the whole set.
- Symbolic: comma separated ``<who><op><perms>`` clauses (``u+x,g-w,a+r``)
  applied left to right on top of the current permissions.

The output is always a combination of the nine owner/group/other
read/write/execute bits and nothing else.
"""

import logging
from enum import IntFlag

from .errors import InvalidModeSpec

logger = logging.getLogger(__name__)


class Perm(IntFlag):
    """Unix-style permission bits."""
    NONE = 0

    IRUSR = 0o400  # owner read
    IWUSR = 0o200  # owner write
    IXUSR = 0o100  # owner execute
    IRGRP = 0o040  # group read
    IWGRP = 0o020  # group write
    IXGRP = 0o010  # group execute
    IROTH = 0o004  # other read
    IWOTH = 0o002  # other write
    IXOTH = 0o001  # other execute

    ALL = 0o777


# who -> mask of the bits that clause may touch
WHO_MASKS = {
    'u': 0o700,
    'g': 0o070,
    'o': 0o007,
    'a': 0o777,
}

# permission letter -> that bit for every class, narrowed by the who mask
PERM_BITS = {
    'r': 0o444,
    'w': 0o222,
    'x': 0o111,
}

OCTAL_DIGITS = frozenset('01234567')


def is_octal(spec: str) -> bool:
    """Check for the 3-digit octal form."""
    return len(spec) == 3 and all(c in OCTAL_DIGITS for c in spec)


def parse_octal(spec: str) -> Perm:
    """Parse a 3-digit octal mode; digits map to owner, group, other."""
    if not is_octal(spec):
        raise InvalidModeSpec(spec, 'expected three octal digits')
    owner, group, other = (int(c) for c in spec)
    return Perm((owner << 6) | (group << 3) | other)


def apply_clause(clause: str, current: int) -> Perm:
    """Apply one ``<who><op><perms>`` clause to ``current``."""
    who, op, perms = clause[0], clause[1], clause[2:]

    mask = WHO_MASKS.get(who)
    if mask is None:
        raise InvalidModeSpec(clause, f"unknown class '{who}'")
    if op not in '+-':
        raise InvalidModeSpec(clause, f"unknown operator '{op}'")

    bits = 0
    for p in perms:
        if p not in PERM_BITS:
            raise InvalidModeSpec(clause, f"unknown permission '{p}'")
        bits |= PERM_BITS[p]
    bits &= mask

    if op == '+':
        return Perm((current | bits) & Perm.ALL)
    return Perm(current & ~bits & Perm.ALL)


def parse_symbolic(spec: str, current: int) -> Perm:
    """
    Apply a comma separated clause list to ``current`` in order.

    Clauses shorter than three characters (a stray comma, ``u+``) are
    skipped rather than rejected.
    """
    result = Perm(current & Perm.ALL)
    for clause in spec.split(','):
        if len(clause) < 3:
            logger.debug("skipping short mode clause %r in %r", clause, spec)
            continue
        result = apply_clause(clause, result)
    return result


def decode(spec: str, current: int = 0) -> Perm:
    """
    Decode a chmod mode string into a permission set.

    Args:
        spec: ``755`` style octal or ``u+x,g-w`` style symbolic mode
        current: the permissions the symbolic form modifies

    Returns:
        The new permission bits.

    Raises:
        InvalidModeSpec: if ``spec`` is malformed.
    """
    if not spec:
        raise InvalidModeSpec(spec, 'empty mode')
    if spec.isdigit():
        return parse_octal(spec)
    return parse_symbolic(spec, current)


def format_permissions(perm: int) -> str:
    """Render permission bits as an ``rwxr-xr-x`` string."""
    result = ''
    for shift in (6, 3, 0):
        triplet = (perm >> shift) & 0o7
        result += 'r' if triplet & 0o4 else '-'
        result += 'w' if triplet & 0o2 else '-'
        result += 'x' if triplet & 0o1 else '-'
    return result
