"""
Tsrc Errors.

Fatal error types surfaced at the orchestrator boundary.
Each one carries the process exit status it maps to.
Requires Python 3.11+.
"""


class BuildError(Exception):
    """Base class for fatal errors; carries a process exit status."""

    def __init__(self, message: str = "", status_code: int = 1) -> None:
        super().__init__(message)
        self.status_code = status_code


class CompileFailedError(BuildError):
    """The compiler ran and exited non-zero outside watch mode."""

    def __init__(self, exit_code: int) -> None:
        super().__init__(f"Compilation failed with exit code {exit_code}", exit_code)
        self.exit_code = exit_code


class CompilerLaunchError(BuildError):
    """The compiler could not be started at all."""


class ManifestError(BuildError):
    """The compiler response file could not be written."""


class WatcherError(BuildError):
    """The filesystem watch subsystem stopped working."""
