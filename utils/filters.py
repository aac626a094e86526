"""
Pure filter predicates over actions and log lines.  No I/O.
"""

from __future__ import annotations

import re

from utils.errors import InvalidPattern
from utils.models import Action, LogLine


def compile_pattern(pattern: str | None) -> re.Pattern | None:
    """Compile a user-supplied regex, or return None when none was given."""
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise InvalidPattern(pattern, str(exc))


def filter_actions(actions: list[Action], errors_only: bool) -> list[Action]:
    """Keep only non-success actions when *errors_only* is set.

    Actions with no status at all are dropped: an unknown status is not a
    known error.
    """
    if not errors_only:
        return list(actions)
    return [
        a for a in actions
        if a.status is not None and a.status.lower() != "success"
    ]


def filter_lines(lines: list[LogLine], pattern: re.Pattern | None) -> list[LogLine]:
    """Keep lines whose message contains a match for *pattern* (re.search)."""
    if pattern is None:
        return list(lines)
    return [line for line in lines if pattern.search(line.text)]
