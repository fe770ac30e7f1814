"""
Tsrc Source Tree Scanner.

Enumerates source and declaration files below the project root.
Requires Python 3.11+.
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Any

from utils.logger import LoggerMixin
from watcher.classifier import DECLARATION_SUFFIX, IgnoreSet, PathKind, classify


class SourceTreeScanner(LoggerMixin):
    """
    Lists the files taking part in a full rebuild.

    Each call walks the tree afresh and yields paths relative to the
    root in filesystem order.
    """

    def __init__(
        self,
        root_path: Path,
        ignore_set: IgnoreSet,
        pattern: str = "*.ts",
        declaration_suffix: str = DECLARATION_SUFFIX,
        logger: Any | None = None,
    ) -> None:
        self.use_logger(logger)
        self._root_path = Path(root_path)
        self._ignore_set = ignore_set
        self._pattern = pattern
        self._declaration_suffix = declaration_suffix

    def _walk(self, pattern: str) -> Iterator[tuple[str, PathKind]]:
        for path in self._root_path.rglob(pattern):
            if not path.is_file():
                continue
            relative = str(path.relative_to(self._root_path))
            yield relative, classify(relative, self._ignore_set, self._declaration_suffix)

    def list_sources(self) -> Iterator[str]:
        """Yield every non-ignored source file."""
        for relative, kind in self._walk(self._pattern):
            if kind is PathKind.SOURCE:
                self.log.debug("list_sources", path=relative)
                yield relative

    def list_declarations(self) -> Iterator[str]:
        """Yield every non-ignored declaration file."""
        for relative, kind in self._walk(f"*{self._declaration_suffix}"):
            if kind is PathKind.DECLARATION:
                self.log.debug("list_declarations", path=relative)
                yield relative
