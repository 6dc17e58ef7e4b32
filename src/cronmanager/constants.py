from __future__ import annotations

from pathlib import Path

# ---------------------------------------------------------------------------
# Metric family
# ---------------------------------------------------------------------------
# HELP and TYPE must be byte-identical across every .prom file node_exporter
# merges, otherwise the textfile collector refuses the family.
# See https://github.com/prometheus/node_exporter/issues/1885
METRIC_NAME = "cronjob"
HELP_LINE = "# HELP cronjob metric generated by cronmanager"
TYPE_LINE = "# TYPE cronjob gauge"

DIMENSION_RUN = "run"
DIMENSION_DELAYED = "delayed"
DIMENSION_FAILED = "failed"
DIMENSION_DURATION = "duration"
DIMENSION_LAST = "last"

DIMENSIONS = (
    DIMENSION_RUN,
    DIMENSION_DELAYED,
    DIMENSION_FAILED,
    DIMENSION_DURATION,
    DIMENSION_LAST,
)

# ---------------------------------------------------------------------------
# Paths and environment
# ---------------------------------------------------------------------------
TEXTFILE_PATH_ENV = "COLLECTOR_TEXTFILE_PATH"
STAGING_DIR_ENV = "CRONMANAGER_STAGING_DIR"
LOG_LEVEL_ENV = "CRONMANAGER_LOG_LEVEL"

DEFAULT_TEXTFILE_DIR = Path("/var/lib/node_exporter")
DEFAULT_STAGING_DIR = Path("/tmp")
TEXTFILE_SUFFIX = ".prom"
TEXTFILE_MODE = 0o644
LOG_FILE_MODE = 0o600

# ---------------------------------------------------------------------------
# Timing (seconds)
# ---------------------------------------------------------------------------
PROBE_INTERVAL_SEC = 1.0
PROBE_JOIN_TIMEOUT_SEC = 5.0  # Bounded wait for an in-flight tick at job exit
IDLE_FOR_SECONDS = 60  # Minimum visible run time when --idle is given

# ---------------------------------------------------------------------------
# CLI defaults
# ---------------------------------------------------------------------------
DEFAULT_TIMEOUT_SECONDS = 3600
LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(threadName)s] %(message)s"

# Characters a job name may not contain: it is written verbatim into a quoted
# label value and used as a file name.
FORBIDDEN_JOB_NAME_CHARS = ('"', "\n", "/")
