"""
Tests for Compiler Manifest.

Requires Python 3.11+.
"""

from pathlib import Path

import pytest

from orchestrator.manifest import (
    build_manifest,
    remove_stale_manifest,
    response_file,
    write_manifest,
)
from utils.errors import ManifestError


class TestBuildManifest:
    """Test cases for build_manifest()."""

    def test_declarations_first(self):
        """Test that declarations precede sources."""
        entries = build_manifest(["a.d.ts"], ["b.ts", "c.ts"])

        assert len(entries) == 3
        assert entries[0] == "a.d.ts"
        assert set(entries[1:]) == {"b.ts", "c.ts"}

    def test_declarations_filtered_from_sources(self):
        """Test that declaration files are never listed as sources."""
        entries = build_manifest(["a.d.ts"], ["b.ts", "a.d.ts", "other.d.ts"])

        assert entries == ["a.d.ts", "b.ts"]

    def test_duplicates_removed(self):
        """Test that repeated sources appear once."""
        assert build_manifest([], ["b.ts", "b.ts", "c.ts"]) == ["b.ts", "c.ts"]

    def test_accepts_generators(self):
        """Test that lazy scans can feed the manifest directly."""
        entries = build_manifest(iter(["x.d.ts"]), (s for s in ["y.ts"]))

        assert entries == ["x.d.ts", "y.ts"]


class TestResponseFile:
    """Test cases for writing and cleaning up the response file."""

    def test_write_manifest(self, tmp_path: Path):
        """Test the on-disk format: one path per line, UTF-8."""
        path = tmp_path / ".tsrc"
        write_manifest(path, ["a.d.ts", "src/ünïcode.ts"])

        assert path.read_bytes() == "a.d.ts\nsrc/ünïcode.ts\n".encode("utf-8")

    def test_written_before_body_and_removed_after(self, tmp_path: Path):
        """Test that the file exists inside the block and is gone afterwards."""
        path = tmp_path / ".tsrc"

        with response_file(path, ["a.d.ts", "b.ts"]) as manifest:
            assert manifest == path
            assert path.read_text(encoding="utf-8").splitlines() == ["a.d.ts", "b.ts"]

        assert not path.exists()

    def test_removed_when_body_raises(self, tmp_path: Path):
        """Test that cleanup happens on exceptions too."""
        path = tmp_path / ".tsrc"

        with pytest.raises(RuntimeError):
            with response_file(path, ["b.ts"]):
                raise RuntimeError("compiler crashed")

        assert not path.exists()

    def test_regenerated_not_appended(self, tmp_path: Path):
        """Test that a new cycle never sees entries from an earlier one."""
        path = tmp_path / ".tsrc"
        path.write_text("stale.ts\n", encoding="utf-8")

        with response_file(path, ["fresh.ts"]):
            assert path.read_text(encoding="utf-8") == "fresh.ts\n"

    def test_write_failure(self, tmp_path: Path):
        """Test that write errors surface as ManifestError with the OS cause."""
        path = tmp_path / "missing-dir" / ".tsrc"

        with pytest.raises(ManifestError) as exc_info:
            with response_file(path, ["b.ts"]):
                pytest.fail("body must not run")

        assert isinstance(exc_info.value.__cause__, OSError)
        assert exc_info.value.status_code == 1
        assert not path.exists()

    def test_remove_stale_manifest(self, tmp_path: Path):
        """Test removal of a manifest left by a crashed run."""
        path = tmp_path / ".tsrc"
        path.write_text("old.ts\n", encoding="utf-8")

        assert remove_stale_manifest(path) is True
        assert not path.exists()
        assert remove_stale_manifest(path) is False
