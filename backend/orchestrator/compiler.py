"""
Tsrc Compiler Invoker.

Runs the external compiler and relays its output line by line.
Requires Python 3.11+.
"""

import os
import shutil
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from utils.config import CompilerSettings
from utils.errors import CompilerLaunchError
from utils.logger import LoggerMixin


@dataclass(frozen=True, slots=True)
class OutputLine:
    """A single line of compiler output."""

    is_error: bool
    text: str


@dataclass(slots=True)
class CompileResult:
    """Outcome of one compiler run."""

    exit_code: int
    elapsed: float  # seconds
    output_lines: list[OutputLine] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """Check if the compiler exited cleanly."""
        return self.exit_code == 0

    @property
    def error_lines(self) -> list[str]:
        """Get the lines classified as errors."""
        return [line.text for line in self.output_lines if line.is_error]


def build_compiler_arguments(settings: CompilerSettings) -> list[str]:
    """Build the fixed compiler flags from configuration."""
    args: list[str] = []
    if settings.module:
        args.extend(["--module", settings.module])
    if settings.source_map:
        args.append("--sourceMap")
    if settings.target:
        args.extend(["--target", settings.target])
    args.extend(settings.extra_args)
    return args


def is_error_line(line: str) -> bool:
    """Heuristic: any line mentioning "error" is an error line."""
    return "error" in line


class CompilerInvoker(LoggerMixin):
    """
    Launches the compiler against a manifest file.

    Standard error is merged into standard output so diagnostics keep
    their relative order while being streamed.
    """

    def __init__(
        self,
        executable: str,
        arguments: list[str] | None = None,
        cwd: Path | None = None,
        logger: Any | None = None,
    ) -> None:
        """
        Initialize the invoker.

        Args:
            executable: Compiler program name or path
            arguments: Flags placed before the manifest reference
            cwd: Working directory for the compiler (defaults to the current one)
            logger: Optional logger replacing the class default
        """
        self.use_logger(logger)
        self._executable = executable
        self._arguments = list(arguments or [])
        self._cwd = Path(cwd or os.getcwd()).resolve()

    @classmethod
    def from_settings(
        cls, settings: CompilerSettings, cwd: Path | None = None, logger: Any | None = None
    ) -> "CompilerInvoker":
        """Create an invoker from compiler settings."""
        return cls(settings.executable, build_compiler_arguments(settings), cwd, logger=logger)

    def command(self, manifest_path: Path) -> list[str]:
        """Get the full command line for a manifest."""
        return [self._executable, *self._arguments, f"@{manifest_path}"]

    def _strip_cwd(self, line: str) -> str:
        prefix = os.path.join(str(self._cwd), "")
        if line.startswith(prefix):
            return line[len(prefix):]
        return line

    def _locate_executable(self) -> str | None:
        """Find the compiler, resolving relative paths against the working directory."""
        executable = self._executable
        has_dir = os.sep in executable or (os.altsep is not None and os.altsep in executable)
        if has_dir and not os.path.isabs(executable):
            executable = str(self._cwd / executable)
        return shutil.which(executable)

    def invoke(self, manifest_path: Path) -> CompileResult:
        """
        Run the compiler and wait for it to exit.

        Args:
            manifest_path: Response file listing the files to compile

        Returns:
            CompileResult with exit code, duration and relayed lines

        Raises:
            CompilerLaunchError: if the compiler cannot be started
        """
        resolved = self._locate_executable()
        if resolved is None:
            raise CompilerLaunchError(f"Compiler not found: {self._executable}")

        command = [resolved, *self.command(manifest_path)[1:]]
        self.log.debug("compiler_command", command=command, cwd=str(self._cwd))

        lines: list[OutputLine] = []
        start_time = time.perf_counter()
        try:
            process = subprocess.Popen(
                command,
                cwd=self._cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise CompilerLaunchError(f"Unable to launch compiler {resolved}") from e

        with process:
            assert process.stdout is not None
            for raw in process.stdout:
                text = self._strip_cwd(raw.rstrip("\r\n"))
                line = OutputLine(is_error_line(text), text)
                if line.is_error:
                    self.log.error("compiler_output", line=text)
                else:
                    self.log.info("compiler_output", line=text)
                lines.append(line)
            exit_code = process.wait()

        return CompileResult(
            exit_code=exit_code,
            elapsed=time.perf_counter() - start_time,
            output_lines=lines,
        )
