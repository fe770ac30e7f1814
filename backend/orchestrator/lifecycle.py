"""
Tsrc Process Lifecycle Guard.

Ends the watch loop once a monitored parent process has exited.
Requires Python 3.11+.
"""

import os
from typing import Any

import psutil

from utils.logger import LoggerMixin


class ProcessLifecycleGuard(LoggerMixin):
    """
    Liveness predicate for the watch loop.

    Without a tracked process the loop always continues. The process
    handle is captured once, up front; psutil compares creation times,
    so a recycled PID is not mistaken for the original process.
    """

    def __init__(self, process: psutil.Process | None = None, logger: Any | None = None) -> None:
        self.use_logger(logger)
        self._process = process

    @classmethod
    def for_parent(cls, logger: Any | None = None) -> "ProcessLifecycleGuard":
        """Track the process that spawned this one."""
        guard = cls(psutil.Process(os.getppid()), logger=logger)
        guard.log.debug(
            "monitoring_parent_process",
            pid=guard._process.pid,
            name=guard._process.name(),
        )
        return guard

    @property
    def process(self) -> psutil.Process | None:
        """Get the monitored process, if any."""
        return self._process

    @property
    def enabled(self) -> bool:
        """Check if a process is being monitored."""
        return self._process is not None

    def should_continue(self) -> bool:
        """Check whether the loop may keep running."""
        if self._process is None:
            return True
        try:
            alive = (
                self._process.is_running()
                and self._process.status() != psutil.STATUS_ZOMBIE
            )
        except psutil.NoSuchProcess:
            alive = False
        if not alive:
            self.log.info("parent_process_exited", pid=self._process.pid)
        return alive
