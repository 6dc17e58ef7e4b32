from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from cronmanager.constants import LOG_FORMAT, LOG_LEVEL_ENV


def resolve_log_level(cli_level: Optional[str] = None) -> int:
    """
    Pick the supervisor's log level.

    --log-level beats CRONMANAGER_LOG_LEVEL; blank values are skipped and an
    unknown name means INFO. The job's own output is unaffected either way.
    """
    for candidate in (cli_level, os.environ.get(LOG_LEVEL_ENV)):
        if candidate is None or not candidate.strip():
            continue
        level = logging.getLevelName(candidate.strip().upper())
        return level if isinstance(level, int) else logging.INFO
    return logging.INFO


def configure_logging(cli_level: Optional[str] = None) -> int:
    """
    Send supervisor logs to stderr, leaving stdout to the job.

    Returns the level applied. Existing handlers (e.g. under pytest) are kept
    and only the root level changes.
    """
    level = resolve_log_level(cli_level)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger().setLevel(level)
    return level


__all__ = ["configure_logging", "resolve_log_level"]
