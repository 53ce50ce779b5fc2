"""Pattern filtering for object keys.

This module provides:
- compile_pattern: Compile a user-supplied regular expression
- PatternMatcher: Decides whether a root-relative key qualifies for sync
"""

from __future__ import annotations

import re

from s3sync.core.config import MATCH_EVERYTHING
from s3sync.core.types import ConfigurationError


def compile_pattern(pattern: str | None) -> re.Pattern[str] | None:
    """Compile a filter pattern.

    Args:
        pattern: Regular expression source, or None for no filter.

    Returns:
        The compiled pattern, or None.

    Raises:
        ConfigurationError: If the expression does not compile.
    """
    if pattern is None:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"Invalid pattern {pattern!r}: {e}") from e


class PatternMatcher:
    """Matches keys against one regular expression.

    The expression is searched anywhere in the key, so anchors must be
    written explicitly (e.g. r"\\.csv$").
    """

    def __init__(self, pattern: re.Pattern[str] | str | None = None) -> None:
        """Initialize with a pattern.

        Args:
            pattern: Compiled pattern or source; None matches everything.
        """
        if isinstance(pattern, str):
            pattern = compile_pattern(pattern)
        self._pattern = pattern if pattern is not None else re.compile(MATCH_EVERYTHING)

    @property
    def pattern(self) -> str:
        return self._pattern.pattern

    def matches(self, key: str) -> bool:
        """Check if a root-relative key qualifies for sync."""
        return self._pattern.search(key) is not None

    def __repr__(self) -> str:
        return f"PatternMatcher({self.pattern!r})"
