# cronmanager/runner.py
from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from collections import deque
from pathlib import Path
from typing import IO, Callable, Deque, List, Optional

from cronmanager.constants import IDLE_FOR_SECONDS, LOG_FILE_MODE
from cronmanager.errors import ConfigurationError, LaunchError
from cronmanager.monitor import JobMonitor, JobRun, ProbeThread
from cronmanager.store import MetricsStore

logger = logging.getLogger("cronmanager.runner")

# Lines of captured output echoed to the debug log when no log file is set.
OUTPUT_TAIL_LINES = 20


def parse_command(command: str) -> List[str]:
    """Split a command string into argv using shell-like quoting."""
    try:
        argv = shlex.split(command)
    except ValueError as e:
        raise ConfigurationError(f"cannot parse command {command!r}: {e}") from e
    if not argv:
        raise ConfigurationError("command cannot be empty")
    return argv


def resolve_executable(binary: str) -> str:
    """
    Return the path that will be executed for `binary`.

    Names containing a slash are taken as paths; bare names go through PATH.
    """
    if "/" in binary:
        path = Path(binary)
        if not path.is_file():
            raise ConfigurationError(f"command binary '{binary}' not found or not accessible")
        if not os.access(path, os.X_OK):
            raise ConfigurationError(f"command binary '{binary}' is not executable")
        return binary

    resolved = shutil.which(binary)
    if resolved is None:
        raise ConfigurationError(f"command binary '{binary}' not found in PATH")
    return resolved


def open_log_file(path: Path) -> IO[bytes]:
    """Open the job log for appending, creating it owner-only."""
    try:
        fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, LOG_FILE_MODE)
    except OSError as e:
        raise ConfigurationError(f"cannot open log file '{path}': {e}") from e
    return os.fdopen(fd, "ab")


def idle_wait(
    started_at: float,
    idle_for: int = IDLE_FOR_SECONDS,
    now: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> float:
    """
    Keep the job visible as running for at least `idle_for` seconds.

    Short jobs can start and finish between two Prometheus scrapes. Returns
    the number of seconds slept.
    """
    if now is None:
        now = time.time()
    remaining = idle_for - int(now - started_at)
    if remaining <= 0:
        return 0.0
    logger.info(f"Idle flag active, waiting an additional {remaining} seconds.")
    sleep(remaining)
    return float(remaining)


class JobRunner:
    """Runs one JobRun to completion while its JobMonitor publishes metrics."""

    def __init__(self, job_run: JobRun, store: MetricsStore):
        self.job_run = job_run
        self.store = store
        self.monitor = JobMonitor(job_run, store)

    def _spawn(self, argv: List[str], log_handle: Optional[IO[bytes]]) -> subprocess.Popen:
        logger.info(f"Executing command for job '{self.job_run.name}': {' '.join(argv)}")
        try:
            return subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=log_handle if log_handle is not None else subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            raise LaunchError(f"failed to start command '{argv[0]}': {e}") from e

    def _wait(self, process: subprocess.Popen) -> int:
        if process.stdout is None:
            return process.wait()
        # Drain the pipe as it fills, keeping only the tail in memory.
        tail: Deque[bytes] = deque(maxlen=OUTPUT_TAIL_LINES)
        with process.stdout:
            for line in process.stdout:
                tail.append(line)
        returncode = process.wait()
        if tail:
            text = b"".join(tail).decode("utf-8", errors="replace").rstrip("\n")
            logger.debug(
                f"--- Output of '{self.job_run.name}' (last {OUTPUT_TAIL_LINES} lines) ---\n{text}"
            )
        return returncode

    def _log_exit(self, returncode: int) -> None:
        if returncode < 0:
            logger.warning(f"Job '{self.job_run.name}' killed by signal {-returncode}.")
        else:
            logger.info(f"Job '{self.job_run.name}' exited with status {returncode}.")

    def run(self) -> int:
        """
        Supervise the job and return the child's exit status.

        Configuration and launch problems raise before any metric is written.
        """
        argv = parse_command(self.job_run.command)
        argv[0] = resolve_executable(argv[0])

        log_handle = open_log_file(self.job_run.log_file) if self.job_run.log_file else None
        try:
            process = self._spawn(argv, log_handle)

            self.monitor.on_job_start()
            probe = ProbeThread(self.monitor)
            probe.start()
            try:
                returncode = self._wait(process)
                self._log_exit(returncode)
                # The probe keeps ticking while idling so the run stays visible.
                if self.job_run.idle:
                    idle_wait(self.job_run.started_at)
            finally:
                probe.stop()
        finally:
            if log_handle is not None:
                try:
                    log_handle.close()
                except OSError as e:
                    logger.error(f"Error closing log file {self.job_run.log_file}: {e}")

        self.monitor.on_job_exit(returncode == 0)
        return returncode


__all__ = [
    "parse_command",
    "resolve_executable",
    "open_log_file",
    "idle_wait",
    "JobRunner",
]
