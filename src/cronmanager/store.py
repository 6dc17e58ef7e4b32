# cronmanager/store.py
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Optional

from cronmanager import config
from cronmanager.codec import is_known_dimension
from cronmanager.constants import TEXTFILE_MODE, TEXTFILE_SUFFIX
from cronmanager.textfile import iter_samples, merge

logger = logging.getLogger("cronmanager.store")

# One lock for every write in the process, whichever job or store instance
# it targets. Other processes are not covered: the rename keeps readers safe,
# but two supervisors for the same job name can still lose an update.
_WRITE_LOCK = threading.Lock()


class MetricsStore:
    """Reads, merges and atomically republishes per-job .prom files."""

    def __init__(
        self,
        textfile_dir: Optional[Path] = None,
        staging_dir: Optional[Path] = None,
    ):
        # None means "resolve from the environment on every write".
        self._textfile_dir = textfile_dir
        self._staging_dir = staging_dir

    @property
    def textfile_dir(self) -> Path:
        if self._textfile_dir is not None:
            return self._textfile_dir
        return config.get_textfile_dir()

    @property
    def staging_dir(self) -> Path:
        if self._staging_dir is not None:
            return self._staging_dir
        return config.get_staging_dir()

    def destination_path(self, job: str) -> Path:
        return self.textfile_dir / f"{job}{TEXTFILE_SUFFIX}"

    def staging_path(self, job: str) -> Path:
        return self.staging_dir / f"{job}{TEXTFILE_SUFFIX}"

    def read(self, job: str) -> bytes:
        """Current content of the job's file; a missing file reads as empty."""
        try:
            return self.destination_path(job).read_bytes()
        except FileNotFoundError:
            return b""

    def read_samples(self, job: str) -> Dict[str, str]:
        """Map of dimension -> value for `job` as currently published."""
        return {s.dimension: s.value for s in iter_samples(self.read(job)) if s.job == job}

    def write(self, job: str, dimension: str, value: object) -> bool:
        """
        Set one sample in the job's textfile.

        The whole read-merge-stage-rename sequence runs under the process-wide
        lock. I/O failures are logged and reported through the return value,
        never raised: losing a metric must not affect the supervised job.
        """
        if not is_known_dimension(dimension):
            logger.warning(f"Writing unrecognised dimension '{dimension}' for job '{job}'.")

        with _WRITE_LOCK:
            dest = self.destination_path(job)
            try:
                current = dest.read_bytes()
            except FileNotFoundError:
                current = b""
            except OSError as e:
                # Publishing over a file we could not read would erase other samples.
                logger.error(
                    f"Failed to read metrics file {dest}: {e}. Dropping {dimension}={value} for '{job}'."
                )
                return False

            updated = merge(current, job, dimension, value)

            tmp = self.staging_path(job)
            try:
                tmp.write_bytes(updated)
                tmp.chmod(TEXTFILE_MODE)
            except OSError as e:
                logger.error(f"Failed to stage metrics file {tmp}: {e}")
                return False

            try:
                tmp.replace(dest)
            except OSError as e:
                logger.error(f"Failed to move {tmp} to final location {dest}: {e}")
                try:
                    tmp.unlink()
                except OSError as e_unlink:
                    logger.debug(f"Could not remove staged file {tmp}: {e_unlink}")
                return False

        logger.debug(f"Published {dimension}={value} for '{job}' to {dest}")
        return True


__all__ = ["MetricsStore"]
