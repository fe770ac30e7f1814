"""
Tsrc Change Aggregator.

Debounces rapid file system events into one changeset per rebuild.
Requires Python 3.11+.
"""

from typing import Any, Protocol

from utils.logger import LoggerMixin
from watcher.classifier import DECLARATION_SUFFIX, IgnoreSet, PathKind, classify
from watcher.models import ChangeEvent, ChangeKind, Changeset


class EventSource(Protocol):
    """Anything that hands out change events with a timeout."""

    def next(self, timeout: float | None = None) -> ChangeEvent | None: ...


class ChangeAggregator(LoggerMixin):
    """
    Folds bursts of change events into a single Changeset.

    Editors and build tools emit several events per logical save, so
    events keep being folded into the same changeset until the watcher
    stays quiet for a full quiet period.
    """

    def __init__(
        self,
        watcher: EventSource,
        ignore_set: IgnoreSet,
        declarations: set[str],
        declaration_suffix: str = DECLARATION_SUFFIX,
        logger: Any | None = None,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            watcher: Source of raw change events
            ignore_set: Ignored directory prefixes
            declarations: Running declaration registry, updated in place
            declaration_suffix: Suffix marking declaration files
            logger: Optional logger replacing the class default
        """
        self.use_logger(logger)
        self._watcher = watcher
        self._ignore_set = ignore_set
        self._declarations = declarations
        self._declaration_suffix = declaration_suffix

    def drain(self, first_wait_timeout: float | None, quiet_period: float) -> Changeset:
        """
        Collect one debounce window worth of changes.

        Args:
            first_wait_timeout: Seconds to wait for the first event (None: forever)
            quiet_period: Seconds without events that closes the window

        Returns:
            The accumulated Changeset; empty if nothing arrived
        """
        changeset = Changeset()
        event = self._watcher.next(first_wait_timeout)
        while event is not None:
            self.fold(changeset, event)
            event = self._watcher.next(quiet_period)
        return changeset

    def fold(self, changeset: Changeset, event: ChangeEvent) -> None:
        """Apply a single event to the in-progress changeset."""
        changeset.events += 1
        kind = classify(event.path, self._ignore_set, self._declaration_suffix)

        if kind is PathKind.IGNORED:
            self.log.debug("ignored_file_changed", path=event.path)
        elif kind is PathKind.DECLARATION:
            self._fold_declaration(changeset, event)
        else:
            self._fold_source(changeset, event)

    def _fold_declaration(self, changeset: Changeset, event: ChangeEvent) -> None:
        path = event.path
        if event.kind is ChangeKind.CREATED:
            # A new declaration file is usually empty; wait for its first edit
            changed = path not in self._declarations
            self._declarations.add(path)
        else:
            if event.kind is ChangeKind.DELETED:
                self._declarations.discard(path)
            else:
                self._declarations.add(path)
            changed = not changeset.full_rebuild_required
            changeset.full_rebuild_required = True

        if changed:
            self.log.info("declaration_changed", kind=event.kind.value, path=path)

    def _fold_source(self, changeset: Changeset, event: ChangeEvent) -> None:
        path = event.path
        if event.kind is ChangeKind.DELETED:
            changed = path in changeset.sources
            changeset.sources.discard(path)
        else:
            changed = path not in changeset.sources
            changeset.sources.add(path)

        if changed:
            self.log.info("source_changed", kind=event.kind.value, path=path)
