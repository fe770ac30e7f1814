"""
Tsrc Watcher Data Models.

Change events produced by the watcher and the changesets folded from them.
Requires Python 3.11+.
"""

from dataclasses import dataclass, field
from enum import Enum


class ChangeKind(str, Enum):
    """Kinds of filesystem change reported by the watcher."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A single raw change, relative to the watched root."""

    path: str
    kind: ChangeKind


@dataclass(slots=True)
class Changeset:
    """Changes accumulated during one debounce window."""

    sources: set[str] = field(default_factory=set)
    full_rebuild_required: bool = False
    events: int = 0  # raw events folded in, including ignored ones

    @property
    def is_empty(self) -> bool:
        """Check if nothing in this window requires a rebuild."""
        return not self.sources and not self.full_rebuild_required
