"""
Tsrc File Watcher.

Cross-platform file system monitoring using watchdog.
Requires Python 3.11+.
"""

import fnmatch
import os
import queue
from pathlib import Path
from typing import Any

from watchdog.observers import Observer
from watchdog.events import (
    FileSystemEventHandler,
    FileCreatedEvent,
    FileModifiedEvent,
    FileDeletedEvent,
    FileMovedEvent,
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
)

from utils.errors import WatcherError
from utils.logger import LoggerMixin
from watcher.models import ChangeEvent, ChangeKind


class SourceFileHandler(FileSystemEventHandler, LoggerMixin):
    """
    Turns watchdog callbacks into ChangeEvents on a queue.

    Only files whose name matches the pattern get through; moves are
    split into a deletion of the old name and a creation of the new one.
    """

    def __init__(
        self,
        events: "queue.Queue[ChangeEvent]",
        root_path: Path,
        pattern: str = "*.ts",
    ) -> None:
        """
        Initialize the file handler.

        Args:
            events: Queue receiving every matching change
            root_path: Resolved root that event paths are made relative to
            pattern: Filename glob to pass through
        """
        super().__init__()
        self._events = events
        self._root = str(root_path)
        self._pattern = pattern

    def _relative(self, path: str | bytes) -> str | None:
        """Make an event path relative to the root, or None if it does not match."""
        path = os.fsdecode(path)
        if not fnmatch.fnmatch(os.path.basename(path), self._pattern):
            return None
        return os.path.relpath(path, self._root)

    def _push(self, path: str | bytes, kind: ChangeKind) -> None:
        relative = self._relative(path)
        if relative is None:
            return
        self.log.debug("file_event", path=relative, kind=kind.value)
        self._events.put(ChangeEvent(relative, kind))

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        """Handle file creation."""
        if event.is_directory:
            return
        self._push(event.src_path, ChangeKind.CREATED)

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle file modification."""
        if event.is_directory:
            return
        self._push(event.src_path, ChangeKind.MODIFIED)

    def on_deleted(self, event: FileDeletedEvent | DirDeletedEvent) -> None:
        """Handle file deletion."""
        if event.is_directory:
            return
        self._push(event.src_path, ChangeKind.DELETED)

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Handle file move/rename as deleted(old) + created(new)."""
        if event.is_directory:
            return
        self._push(event.src_path, ChangeKind.DELETED)
        self._push(event.dest_path, ChangeKind.CREATED)


class ChangeWatcher(LoggerMixin):
    """
    Watches a directory tree and queues raw change events.

    The watchdog observer thread is the only producer; next() is the
    single blocking point for the consumer.
    """

    def __init__(
        self,
        root_path: Path,
        pattern: str = "*.ts",
        logger: Any | None = None,
    ) -> None:
        """
        Initialize the change watcher.

        Args:
            root_path: Root directory to watch recursively
            pattern: Filename glob, e.g. "*.ts"
            logger: Optional logger replacing the class default
        """
        self.use_logger(logger)
        self._root_path = Path(root_path).resolve()
        self._pattern = pattern
        self._events: queue.Queue[ChangeEvent] = queue.Queue()
        self._handler = SourceFileHandler(self._events, self._root_path, pattern)
        self._handler.use_logger(logger)
        self._observer: Observer | None = None

    @classmethod
    def open(cls, root_path: Path, pattern: str = "*.ts", logger: Any | None = None) -> "ChangeWatcher":
        """Create a watcher and start it."""
        watcher = cls(root_path, pattern, logger=logger)
        watcher.start()
        return watcher

    def start(self) -> None:
        """Start watching for file changes."""
        if self._observer is not None:
            return

        if not self._root_path.is_dir():
            raise WatcherError(f"Watch root is not a directory: {self._root_path}")

        observer = Observer()
        try:
            observer.schedule(self._handler, str(self._root_path), recursive=True)
            observer.start()
        except OSError as e:
            raise WatcherError(f"Unable to watch {self._root_path}") from e
        self._observer = observer

        self.log.debug(
            "file_watcher_started",
            path=str(self._root_path),
            pattern=self._pattern,
        )

    def next(self, timeout: float | None = None) -> ChangeEvent | None:
        """
        Wait for the next change event.

        Args:
            timeout: Seconds to wait, or None to wait forever

        Returns:
            The next event, or None if the timeout elapsed

        Raises:
            WatcherError: if the watched root vanished or the observer died
        """
        try:
            return self._events.get(timeout=timeout)
        except queue.Empty:
            self._check_health()
            return None

    def _check_health(self) -> None:
        if not self._root_path.is_dir():
            raise WatcherError(f"Watch root disappeared: {self._root_path}")
        if self._observer is not None and not self._observer.is_alive():
            raise WatcherError("File system observer stopped unexpectedly")

    def close(self) -> None:
        """Stop watching for file changes."""
        if self._observer is None:
            return

        self._observer.stop()
        if self._observer.is_alive():
            self._observer.join(timeout=5.0)
        self._observer = None
        self.log.debug("file_watcher_stopped")

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._observer is not None

    def __enter__(self) -> "ChangeWatcher":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()
