"""
Glob and regex path matchers.

Glob patterns are translated with fsspec's glob translation: '*' and '?'
stay within one path segment and '**' spans segments. Patterns are matched
against the whole string form of a path.
"""

import re
from typing import Pattern, Union

from fsspec.utils import glob_translate

from FileSystem.exceptions import UnsupportedOperationError

GLOB_SYNTAX = "glob"
REGEX_SYNTAX = "regex"


class PathMatcher:
    """Matches paths (or path strings) against a compiled pattern."""

    def __init__(self, syntax: str, pattern: str, regex: Pattern[str]):
        self.syntax = syntax
        self.pattern = pattern
        self.regex = regex

    def matches(self, path: Union[str, object]) -> bool:
        return self.regex.match(str(path)) is not None

    __call__ = matches

    def __repr__(self) -> str:
        return f"PathMatcher({self.syntax}:{self.pattern})"


def get_path_matcher(syntax_and_pattern: str) -> PathMatcher:
    """
    Build a matcher from a 'syntax:pattern' string.

    Args:
        syntax_and_pattern: 'glob:<pattern>' or 'regex:<pattern>'; the syntax is case-insensitive

    Returns:
        A PathMatcher

    Raises:
        ValueError: If the string has no syntax prefix or the pattern is invalid
        UnsupportedOperationError: If the syntax is neither glob nor regex
    """
    syntax, sep, pattern = syntax_and_pattern.partition(":")
    if not sep or not syntax:
        raise ValueError(f"Pattern must have the form 'syntax:pattern': {syntax_and_pattern!r}")

    syntax = syntax.lower()
    if syntax == GLOB_SYNTAX:
        expression = glob_translate(pattern)
    elif syntax == REGEX_SYNTAX:
        # Regex patterns must match the whole path, as glob patterns do.
        expression = rf"(?:{pattern})\Z"
    else:
        raise UnsupportedOperationError(f"Syntax '{syntax}' not recognized")

    try:
        regex = re.compile(expression)
    except re.error as e:
        raise ValueError(f"Invalid {syntax} pattern {pattern!r}: {e}") from e
    return PathMatcher(syntax, pattern, regex)
