from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_process_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Make tests deterministic even when run on a host that exports the
    supervisor's variables (e.g. a node_exporter box with
    COLLECTOR_TEXTFILE_PATH set). Nothing should ever write to the real
    /var/lib/node_exporter from a test.
    """
    monkeypatch.delenv("COLLECTOR_TEXTFILE_PATH", raising=False)
    monkeypatch.delenv("CRONMANAGER_STAGING_DIR", raising=False)
    monkeypatch.delenv("CRONMANAGER_LOG_LEVEL", raising=False)


@pytest.fixture
def textfile_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> tuple[Path, Path]:
    """Point the textfile and staging directories at per-test temp dirs."""
    textfile_dir = tmp_path / "textfile"
    staging_dir = tmp_path / "staging"
    textfile_dir.mkdir()
    staging_dir.mkdir()
    monkeypatch.setenv("COLLECTOR_TEXTFILE_PATH", str(textfile_dir))
    monkeypatch.setenv("CRONMANAGER_STAGING_DIR", str(staging_dir))
    return textfile_dir, staging_dir
