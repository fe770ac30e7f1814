"""
Tsrc File Watcher Package.

File system monitoring, path classification and change debouncing.
Requires Python 3.11+.
"""

from watcher.classifier import IgnoreSet, PathKind, classify
from watcher.debouncer import ChangeAggregator
from watcher.file_watcher import ChangeWatcher
from watcher.models import ChangeEvent, ChangeKind, Changeset

__all__ = [
    "ChangeWatcher",
    "ChangeAggregator",
    "ChangeEvent",
    "ChangeKind",
    "Changeset",
    "IgnoreSet",
    "PathKind",
    "classify",
]
