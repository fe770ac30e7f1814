"""
Tsrc Build Orchestrator.

Owns the watch/compile loop: full or incremental rebuild decisions,
manifest handling and compiler outcomes.
Requires Python 3.11+.
"""

from collections.abc import Callable, Iterable
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from orchestrator.compiler import CompileResult, CompilerInvoker
from orchestrator.lifecycle import ProcessLifecycleGuard
from orchestrator.manifest import build_manifest, remove_stale_manifest, response_file
from orchestrator.scanner import SourceTreeScanner
from utils.config import Settings
from utils.errors import CompileFailedError
from utils.logger import LoggerMixin
from watcher.classifier import IgnoreSet
from watcher.debouncer import ChangeAggregator
from watcher.file_watcher import ChangeWatcher
from watcher.models import ChangeEvent


class BuildState(str, Enum):
    """States of the orchestrator loop."""

    INITIALIZING = "initializing"
    COMPILING = "compiling"
    IDLE = "idle"
    TERMINATED = "terminated"


class BuildScope(str, Enum):
    """Which files a compile cycle covers."""

    FULL = "full"
    INCREMENTAL = "incremental"


class WatchHandle(Protocol):
    """Started watcher as seen by the orchestrator."""

    def next(self, timeout: float | None = None) -> ChangeEvent | None: ...

    def close(self) -> None: ...


WatcherFactory = Callable[[Path, str], WatchHandle]


class BuildOrchestrator(LoggerMixin):
    """
    Runs the compiler once, or keeps recompiling as files change.

    Everything happens on the calling thread: there is never more than
    one compile in flight, and a running compile is allowed to finish
    before the lifecycle guard is consulted again.
    """

    def __init__(
        self,
        settings: Settings,
        guard: ProcessLifecycleGuard | None = None,
        invoker: CompilerInvoker | None = None,
        watcher_factory: WatcherFactory | None = None,
        logger: Any | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            settings: Application settings
            guard: Lifecycle guard; defaults to one that never stops the loop
            invoker: Compiler invoker; defaults to one built from settings
            watcher_factory: Opens a started watcher for (root, pattern)
            logger: Optional logger replacing the class default
        """
        self.use_logger(logger)
        self._injected_logger = logger
        self._settings = settings
        self._root_path = Path(settings.build.root).resolve()
        self._ignore_set = IgnoreSet.from_paths(settings.build.ignore)
        self._declarations: set[str] = set()
        self._scanner = SourceTreeScanner(
            self._root_path,
            self._ignore_set,
            pattern=settings.watcher.pattern,
            declaration_suffix=settings.build.declaration_suffix,
            logger=logger,
        )
        self._guard = guard or ProcessLifecycleGuard(logger=logger)
        self._invoker = invoker or CompilerInvoker.from_settings(
            settings.compiler, cwd=self._root_path, logger=logger
        )
        self._watcher_factory = watcher_factory or (
            lambda root, pattern: ChangeWatcher.open(root, pattern, logger=logger)
        )
        self._state = BuildState.INITIALIZING
        self._last_result: CompileResult | None = None

    @property
    def state(self) -> BuildState:
        """Get the current loop state."""
        return self._state

    @property
    def last_result(self) -> CompileResult | None:
        """Get the result of the most recent compiler run."""
        return self._last_result

    @property
    def declarations(self) -> frozenset[str]:
        """Get the known declaration files."""
        return frozenset(self._declarations)

    @property
    def manifest_path(self) -> Path:
        """Get the location of the compiler response file."""
        return self._root_path / self._settings.build.response_file

    def run(self) -> None:
        """
        Compile, then keep watching if watch mode is enabled.

        Raises:
            CompileFailedError: if compilation fails outside watch mode
            BuildError: for launch, manifest and watcher failures
        """
        if remove_stale_manifest(self.manifest_path):
            self.log.debug("removed_stale_manifest", path=str(self.manifest_path))

        try:
            if self._settings.watch:
                self.log.debug("watch_mode_enabled")
                self._watch()
            else:
                self._initialize()
                self._compile(BuildScope.FULL, self._scanner.list_sources())
        finally:
            self._state = BuildState.TERMINATED

    def _initialize(self) -> None:
        self._state = BuildState.INITIALIZING
        self._declarations.clear()
        self._declarations.update(self._scanner.list_declarations())

    def _watch(self) -> None:
        quiet_period = self._settings.debounce_seconds
        watcher = self._watcher_factory(self._root_path, self._settings.watcher.pattern)
        try:
            aggregator = ChangeAggregator(
                watcher,
                self._ignore_set,
                self._declarations,
                declaration_suffix=self._settings.build.declaration_suffix,
                logger=self._injected_logger,
            )
            self._initialize()
            self._compile(BuildScope.FULL, self._scanner.list_sources())

            changes_detected = True
            while True:
                self._state = BuildState.IDLE
                if not self._guard.should_continue():
                    break
                if changes_detected:
                    self.log.info("waiting_for_changes")

                # The first wait is bounded so the guard gets polled
                changeset = aggregator.drain(quiet_period, quiet_period)
                changes_detected = changeset.events > 0

                if changeset.full_rebuild_required:
                    self._compile(BuildScope.FULL, self._scanner.list_sources())
                elif changeset.sources:
                    self._compile(BuildScope.INCREMENTAL, sorted(changeset.sources))
        finally:
            watcher.close()

    def _compile(self, scope: BuildScope, sources: Iterable[str]) -> CompileResult | None:
        """
        Run one compile cycle.

        Returns:
            The CompileResult, or None if there was nothing to compile
        """
        self._state = BuildState.COMPILING
        entries = build_manifest(
            sorted(self._declarations),
            sources,
            declaration_suffix=self._settings.build.declaration_suffix,
        )
        source_count = len(entries) - len(self._declarations)
        if source_count == 0:
            self.log.info("nothing_to_compile", scope=scope.value)
            return None

        self.log.info("compiling", scope=scope.value, sources=source_count)
        with response_file(self.manifest_path, entries) as manifest_path:
            result = self._invoker.invoke(manifest_path)
        self._last_result = result

        self.log.info(
            "compilation_completed",
            status="successfully" if result.succeeded else "with errors",
            seconds=round(result.elapsed, 1),
        )

        if not result.succeeded:
            if not self._settings.watch:
                raise CompileFailedError(result.exit_code)
            self.log.warning("compile_failed", exit_code=result.exit_code)
        return result
