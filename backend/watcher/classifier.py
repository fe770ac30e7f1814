"""
Tsrc Path Classifier.

Sorts relative paths into ignored, declaration and source files.
Requires Python 3.11+.
"""

import os
from collections.abc import Iterable, Iterator
from enum import Enum

DECLARATION_SUFFIX = ".d.ts"


class PathKind(str, Enum):
    """Classification of a path relative to the project root."""

    IGNORED = "ignored"
    DECLARATION = "declaration"
    SOURCE = "source"


def _normalize_prefix(entry: str) -> str:
    prefix = os.path.normpath(entry.strip())
    if prefix.startswith("." + os.sep):
        prefix = prefix[2:]
    if not prefix.endswith(os.sep):
        prefix += os.sep
    return prefix


class IgnoreSet:
    """
    Immutable set of ignored directory prefixes.

    Every entry is normalized to end with the path separator, so
    ``node_modules`` ignores ``node_modules/x.ts`` but not
    ``node_modules_extra/x.ts``.
    """

    __slots__ = ("_prefixes",)

    def __init__(self, prefixes: frozenset[str] = frozenset()) -> None:
        self._prefixes = prefixes

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> "IgnoreSet":
        """Build an ignore set from raw directory names."""
        return cls(frozenset(_normalize_prefix(p) for p in paths if p and p.strip()))

    def matches(self, path: str) -> bool:
        """Check if a path lies under any ignored prefix."""
        return any(path.startswith(prefix) for prefix in self._prefixes)

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._prefixes

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._prefixes))

    def __len__(self) -> int:
        return len(self._prefixes)

    def __repr__(self) -> str:
        return f"IgnoreSet({sorted(self._prefixes)!r})"


def classify(
    path: str,
    ignore_set: IgnoreSet,
    declaration_suffix: str = DECLARATION_SUFFIX,
) -> PathKind:
    """
    Classify a relative path.

    Ignore prefixes win over everything else; a file carrying the
    declaration suffix is a declaration even though it also matches the
    source pattern.
    """
    if ignore_set.matches(path):
        return PathKind.IGNORED
    if path.endswith(declaration_suffix):
        return PathKind.DECLARATION
    return PathKind.SOURCE
