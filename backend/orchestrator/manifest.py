"""
Tsrc Compiler Manifest.

Builds, writes and cleans up the compiler response file.
Requires Python 3.11+.
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from utils.errors import ManifestError
from watcher.classifier import DECLARATION_SUFFIX


def build_manifest(
    declarations: Iterable[str],
    sources: Iterable[str],
    declaration_suffix: str = DECLARATION_SUFFIX,
) -> list[str]:
    """
    Assemble manifest entries: declarations first, then sources.

    Declaration files are never listed on the source side, and each path
    appears once.
    """
    entries = dict.fromkeys(declarations)
    for source in sources:
        if not source.endswith(declaration_suffix):
            entries.setdefault(source)
    return list(entries)


def write_manifest(path: Path, entries: Iterable[str]) -> None:
    """Write one path per line, UTF-8, no quoting."""
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        for entry in entries:
            f.write(f"{entry}\n")


def remove_stale_manifest(path: Path) -> bool:
    """Delete a manifest left behind by an earlier run. Returns True if one existed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


@contextmanager
def response_file(path: Path, entries: Iterable[str]) -> Iterator[Path]:
    """
    Write the manifest, yield its path, and always delete it afterwards.

    The file is fully written and closed before the body runs.

    Raises:
        ManifestError: if the file cannot be written
    """
    try:
        try:
            write_manifest(path, entries)
        except OSError as e:
            raise ManifestError(f"Unable to write compiler manifest {path}") from e
        yield path
    finally:
        path.unlink(missing_ok=True)
