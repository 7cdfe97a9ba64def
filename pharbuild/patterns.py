# pharbuild/patterns.py
"""
Exclude patterns for directory collection.

Patterns are shell-style globs matched against the full root-relative
path (forward slashes). A plain pattern excludes paths that match it; a
pattern prefixed with "!" excludes paths that do NOT match it. The first
pattern that matches decides.

Example:
    PatternFilter(["!*.php"]).includes("src/a.php")   # True
    PatternFilter(["*.txt"]).includes("src/b.txt")    # False
"""

from fnmatch import fnmatchcase
from typing import Iterable, List, Optional, Union

NEGATION = "!"


def match_pattern(path: str, pattern: str) -> bool:
    """
    Check whether a pattern decides to exclude a path.

    Returns True for a plain pattern that matches the path, and for a
    negated pattern whose glob does not match it.
    """
    inverted = pattern.startswith(NEGATION)
    if inverted:
        pattern = pattern[len(NEGATION):]

    return fnmatchcase(path, pattern) != inverted


class PatternFilter:
    """Ordered list of exclude patterns."""

    def __init__(self, patterns: Optional[Union[str, Iterable[str]]] = None):
        if patterns is None:
            patterns = []
        elif isinstance(patterns, str):
            patterns = [patterns]
        self.patterns: List[str] = list(patterns)

    def includes(self, path: str) -> bool:
        """Return True if no pattern excludes the path."""
        for pattern in self.patterns:
            if match_pattern(path, pattern):
                return False
        return True

    def excludes(self, path: str) -> bool:
        return not self.includes(path)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __repr__(self) -> str:
        return f"PatternFilter({self.patterns!r})"
