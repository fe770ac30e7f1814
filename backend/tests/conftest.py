"""
Tsrc Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import json
import stat
import sys
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

import pytest

from utils.config import BuildSettings, CompilerSettings, Settings, WatcherSettings
from watcher.models import ChangeEvent, ChangeKind


FAKE_COMPILER_TEMPLATE = '''#!{python}
import json
import os
import pathlib
import sys
import time

EXIT_CODE = {exit_code!r}
STDOUT = {stdout!r}
STDERR = {stderr!r}
WAIT_FOR = {wait_for!r}

args = sys.argv[1:]
manifest = [a[1:] for a in args if a.startswith("@")][-1]
entries = pathlib.Path(manifest).read_text(encoding="utf-8").splitlines()
with open({record!r}, "a", encoding="utf-8") as f:
    f.write(json.dumps({{"args": args, "entries": entries, "cwd": os.getcwd()}}) + "\\n")

cwd = os.getcwd()
for line in STDERR:
    print(line.replace("{{cwd}}", cwd), file=sys.stderr, flush=True)
for line in STDOUT:
    print(line.replace("{{cwd}}", cwd), flush=True)
if WAIT_FOR:
    deadline = time.monotonic() + 10.0
    while not os.path.exists(WAIT_FOR):
        if time.monotonic() > deadline:
            sys.exit(99)
        time.sleep(0.01)
sys.exit(EXIT_CODE)
'''


@dataclass
class FakeCompiler:
    """An executable standing in for tsc that records its invocations."""

    path: Path
    record: Path

    def invocations(self) -> list[dict]:
        """Get one {args, entries, cwd} record per run, oldest first."""
        if not self.record.exists():
            return []
        lines = self.record.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line]


class StubWatcher:
    """
    Queue-backed watcher replacement.

    A None in the script ends the current debounce window; once the
    script is exhausted every call times out.
    """

    def __init__(self, script: Iterable[ChangeEvent | None] = ()) -> None:
        self._script = deque(script)
        self.timeouts: list[float | None] = []
        self.closed = False

    def next(self, timeout: float | None = None) -> ChangeEvent | None:
        self.timeouts.append(timeout)
        if self._script:
            return self._script.popleft()
        return None

    def close(self) -> None:
        self.closed = True


class ScriptedGuard:
    """Lifecycle guard answering from a fixed script, then False."""

    def __init__(self, answers: Iterable[bool]) -> None:
        self._answers = deque(answers)
        self.calls = 0

    def should_continue(self) -> bool:
        self.calls += 1
        if self._answers:
            return self._answers.popleft()
        return False


@pytest.fixture
def ts_project(tmp_path: Path) -> Path:
    """Create a small TypeScript project tree."""
    root = tmp_path / "project"
    files = {
        "src/app.ts": "import { helper } from './util';\nhelper();\n",
        "src/util.ts": "export function helper(): void {}\n",
        "src/views/page.ts": "export const page = 1;\n",
        "types/globals.d.ts": "declare const VERSION: string;\n",
        "node_modules/lib/index.ts": "export {};\n",
        "node_modules/lib/index.d.ts": "export {};\n",
        "README.md": "# sample\n",
    }
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def fake_compiler(tmp_path: Path) -> Callable[..., FakeCompiler]:
    """Factory writing a fake compiler executable."""
    if sys.platform == "win32":
        pytest.skip("fake compiler relies on a shebang line")

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def _make(
        exit_code: int = 0,
        stdout: list[str] | None = None,
        stderr: list[str] | None = None,
        name: str = "fake-tsc",
        wait_for: Path | None = None,
    ) -> FakeCompiler:
        path = bin_dir / name
        record = bin_dir / f"{name}.jsonl"
        path.write_text(
            FAKE_COMPILER_TEMPLATE.format(
                python=sys.executable,
                exit_code=exit_code,
                stdout=list(stdout or []),
                stderr=list(stderr or []),
                record=str(record),
                wait_for=str(wait_for) if wait_for else None,
            ),
            encoding="utf-8",
        )
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return FakeCompiler(path=path, record=record)

    return _make


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Factory for settings pointing at a project and compiler."""

    def _make(
        root: Path,
        compiler: FakeCompiler | str = "tsc",
        watch: bool = False,
        ignore: list[str] | None = None,
    ) -> Settings:
        executable = str(compiler.path) if isinstance(compiler, FakeCompiler) else compiler
        return Settings(
            watcher=WatcherSettings(enabled=watch, debounce_delay_ms=10),
            build=BuildSettings(
                root=root,
                ignore=["node_modules"] if ignore is None else ignore,
            ),
            compiler=CompilerSettings(executable=executable),
        )

    return _make


def created(path: str) -> ChangeEvent:
    return ChangeEvent(path, ChangeKind.CREATED)


def modified(path: str) -> ChangeEvent:
    return ChangeEvent(path, ChangeKind.MODIFIED)


def deleted(path: str) -> ChangeEvent:
    return ChangeEvent(path, ChangeKind.DELETED)
