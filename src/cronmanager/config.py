from __future__ import annotations

import os
from pathlib import Path

from cronmanager.constants import (
    DEFAULT_STAGING_DIR,
    DEFAULT_TEXTFILE_DIR,
    STAGING_DIR_ENV,
    TEXTFILE_PATH_ENV,
)


def get_textfile_dir() -> Path:
    """
    Directory node_exporter's textfile collector reads .prom files from.

    Presence of COLLECTOR_TEXTFILE_PATH, not its content, selects the
    override. An empty value therefore means the filesystem root
    ("" + "/<job>.prom"), not the default directory.
    """
    raw = os.environ.get(TEXTFILE_PATH_ENV)
    if raw is None:
        return DEFAULT_TEXTFILE_DIR
    return Path(raw or "/")


def get_staging_dir() -> Path:
    raw = os.environ.get(STAGING_DIR_ENV, "")
    value = raw.strip()
    return Path(value) if value else DEFAULT_STAGING_DIR


__all__ = ["get_textfile_dir", "get_staging_dir"]
