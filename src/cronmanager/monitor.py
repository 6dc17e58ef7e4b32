# cronmanager/monitor.py
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from cronmanager.constants import (
    DEFAULT_TIMEOUT_SECONDS,
    DIMENSION_DELAYED,
    DIMENSION_DURATION,
    DIMENSION_FAILED,
    DIMENSION_LAST,
    DIMENSION_RUN,
    PROBE_INTERVAL_SEC,
    PROBE_JOIN_TIMEOUT_SEC,
)
from cronmanager.store import MetricsStore

logger = logging.getLogger("cronmanager.monitor")


@dataclass(frozen=True)
class JobRun:
    """One supervised invocation. Start times are fixed at creation."""

    name: str
    command: str
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    log_file: Optional[Path] = None
    idle: bool = False
    started_at: float = field(default_factory=time.time)
    started_monotonic: float = field(default_factory=time.monotonic)

    def elapsed_seconds(self, now_monotonic: Optional[float] = None) -> float:
        if now_monotonic is None:
            now_monotonic = time.monotonic()
        return max(0.0, now_monotonic - self.started_monotonic)


class JobState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class JobMonitor:
    """Maps the lifecycle of one JobRun onto cronjob samples."""

    def __init__(self, job_run: JobRun, store: MetricsStore):
        self.job_run = job_run
        self.store = store
        self.state = JobState.STARTING
        self.delayed = False
        # Held for a whole transition, so a tick stalled in I/O finishes
        # before the terminal samples are written, or sees it is too late.
        self._transition_lock = threading.Lock()

    def _write(self, dimension: str, value: object) -> None:
        self.store.write(self.job_run.name, dimension, value)

    def on_job_start(self) -> None:
        logger.info(f"Job '{self.job_run.name}' running (timeout {self.job_run.timeout_seconds}s).")
        with self._transition_lock:
            self.state = JobState.RUNNING
            self._write(DIMENSION_RUN, 1)
            self._write(DIMENSION_DELAYED, 0)

    def on_probe_tick(self, elapsed_seconds: float, now: Optional[float] = None) -> None:
        """Republish duration and last-seen; raise the delayed flag past the timeout."""
        with self._transition_lock:
            if self.state is not JobState.RUNNING:
                logger.debug(f"Ignoring probe tick in state {self.state.value}.")
                return
            if now is None:
                now = time.time()

            self._write(DIMENSION_DURATION, int(elapsed_seconds))
            self._write(DIMENSION_LAST, int(now))

            # Once delayed, stays delayed until the job exits.
            if self.delayed or elapsed_seconds > self.job_run.timeout_seconds:
                if not self.delayed:
                    logger.warning(
                        f"Job '{self.job_run.name}' exceeded its timeout of "
                        f"{self.job_run.timeout_seconds}s ({elapsed_seconds:.0f}s elapsed)."
                    )
                self.delayed = True
                self._write(DIMENSION_DELAYED, 1)

    def on_job_exit(self, succeeded: bool, now: Optional[float] = None) -> None:
        with self._transition_lock:
            if now is None:
                now = time.time()
            self.state = JobState.SUCCEEDED if succeeded else JobState.FAILED
            logger.info(f"Job '{self.job_run.name}' finished: {self.state.value}.")
            self._write(DIMENSION_FAILED, 0 if succeeded else 1)
            self._write(DIMENSION_RUN, 0)
            self._write(DIMENSION_DELAYED, 0)
            self._write(DIMENSION_LAST, int(now))


class ProbeThread(threading.Thread):
    """Calls JobMonitor.on_probe_tick at a fixed cadence until stopped."""

    def __init__(
        self,
        monitor: JobMonitor,
        stop_event: Optional[threading.Event] = None,
        interval: float = PROBE_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(name="ProbeThread", daemon=True)
        self.monitor = monitor
        self.stop_event = stop_event or threading.Event()
        self.interval = interval
        self.clock = clock

    def run(self):
        logger.debug(f"Probe started for job '{self.monitor.job_run.name}'.")
        next_tick = self.clock() + self.interval
        while not self.stop_event.wait(max(0.0, next_tick - self.clock())):
            next_tick += self.interval
            try:
                self.monitor.on_probe_tick(self.monitor.job_run.elapsed_seconds(self.clock()))
            except Exception as e:
                logger.exception(f"Probe tick failed: {e}")
        logger.debug("Probe thread stopped.")

    def stop(self, timeout: float = PROBE_JOIN_TIMEOUT_SEC) -> None:
        """Stop ticking. A tick already writing is allowed to finish."""
        self.stop_event.set()
        if self.is_alive():
            self.join(timeout)
        if self.is_alive():
            logger.warning(f"Probe thread still busy after {timeout}s; exit samples will wait for its tick.")


__all__ = ["JobRun", "JobState", "JobMonitor", "ProbeThread"]
