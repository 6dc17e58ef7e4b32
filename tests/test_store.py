from __future__ import annotations

import logging
import stat
import threading
from pathlib import Path

import pytest

from cronmanager import config
from cronmanager.store import MetricsStore
from cronmanager.textfile import merge


def test_destination_defaults_to_node_exporter_dir() -> None:
    store = MetricsStore()
    assert store.destination_path("backup") == Path("/var/lib/node_exporter/backup.prom")
    assert store.staging_path("backup") == Path("/tmp/backup.prom")


def test_destination_uses_env_override(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("COLLECTOR_TEXTFILE_PATH", str(tmp_path))
    assert MetricsStore().destination_path("backup") == tmp_path / "backup.prom"


def test_empty_env_value_still_overrides_default(monkeypatch) -> None:
    monkeypatch.setenv("COLLECTOR_TEXTFILE_PATH", "")
    assert config.get_textfile_dir() == Path("/")
    assert MetricsStore().destination_path("backup") == Path("/backup.prom")


def test_blank_staging_env_falls_back_to_tmp(monkeypatch) -> None:
    monkeypatch.setenv("CRONMANAGER_STAGING_DIR", "  ")
    assert config.get_staging_dir() == Path("/tmp")


def test_first_write_creates_file_with_headers(textfile_dirs) -> None:
    textfile_dir, staging_dir = textfile_dirs
    store = MetricsStore()

    assert store.write("backup", "run", 1) is True

    content = (textfile_dir / "backup.prom").read_text(encoding="utf-8")
    assert content == (
        "# HELP cronjob metric generated by cronmanager\n"
        "# TYPE cronjob gauge\n"
        'cronjob{name="backup",dimension="run"} 1\n'
    )
    assert not (staging_dir / "backup.prom").exists()


def test_published_file_is_world_readable(textfile_dirs) -> None:
    textfile_dir, _ = textfile_dirs
    MetricsStore().write("backup", "run", 1)
    mode = stat.S_IMODE((textfile_dir / "backup.prom").stat().st_mode)
    assert mode == 0o644


def test_repeated_writes_update_in_place(textfile_dirs) -> None:
    store = MetricsStore()
    store.write("jobA", "run", 1)
    store.write("jobA", "duration", 5)
    store.write("jobA", "run", 0)
    store.write("jobA", "run", 0)

    assert store.read_samples("jobA") == {"run": "0", "duration": "5"}
    content = store.read("jobA")
    assert content.count(b"# TYPE cronjob gauge\n") == 1
    assert content.count(b'dimension="run"') == 1


def test_jobs_get_separate_files(textfile_dirs) -> None:
    textfile_dir, _ = textfile_dirs
    store = MetricsStore()
    store.write("jobA", "run", 1)
    store.write("jobB", "run", 0)

    a = (textfile_dir / "jobA.prom").read_text(encoding="utf-8")
    b = (textfile_dir / "jobB.prom").read_text(encoding="utf-8")
    assert 'name="jobA"' in a and 'name="jobB"' not in a
    assert 'name="jobB"' in b and 'name="jobA"' not in b


def test_explicit_dirs_take_precedence_over_env(textfile_dirs, tmp_path: Path) -> None:
    own_dir = tmp_path / "own"
    own_dir.mkdir()
    store = MetricsStore(textfile_dir=own_dir, staging_dir=own_dir)
    assert store.write("backup", "last", 10) is True
    assert (own_dir / "backup.prom").exists()
    assert not (textfile_dirs[0] / "backup.prom").exists()


def test_read_of_missing_file_is_empty(textfile_dirs) -> None:
    store = MetricsStore()
    assert store.read("nothing") == b""
    assert store.read_samples("nothing") == {}


def test_missing_destination_dir_is_logged_not_raised(tmp_path: Path, caplog) -> None:
    staging = tmp_path / "staging"
    staging.mkdir()
    store = MetricsStore(textfile_dir=tmp_path / "missing", staging_dir=staging)

    with caplog.at_level(logging.ERROR, logger="cronmanager.store"):
        assert store.write("backup", "run", 1) is False

    assert "Failed to move" in caplog.text
    assert not (staging / "backup.prom").exists()


def test_missing_staging_dir_is_logged_not_raised(tmp_path: Path, caplog) -> None:
    store = MetricsStore(textfile_dir=tmp_path, staging_dir=tmp_path / "missing")

    with caplog.at_level(logging.ERROR, logger="cronmanager.store"):
        assert store.write("backup", "run", 1) is False

    assert "Failed to stage" in caplog.text
    assert not (tmp_path / "backup.prom").exists()


def test_unreadable_destination_is_not_overwritten(tmp_path: Path, caplog) -> None:
    # A directory in place of the file makes the read fail with an OSError
    # other than FileNotFoundError.
    (tmp_path / "backup.prom").mkdir()
    store = MetricsStore(textfile_dir=tmp_path, staging_dir=tmp_path)

    with caplog.at_level(logging.ERROR, logger="cronmanager.store"):
        assert store.write("backup", "run", 1) is False

    assert "Failed to read" in caplog.text
    assert (tmp_path / "backup.prom").is_dir()


def test_unknown_dimension_is_written_with_warning(textfile_dirs, caplog) -> None:
    store = MetricsStore()
    with caplog.at_level(logging.WARNING, logger="cronmanager.store"):
        assert store.write("backup", "exit_code", 3) is True
    assert "unrecognised dimension" in caplog.text
    assert store.read_samples("backup") == {"exit_code": "3"}


def test_concurrent_writers_in_process_lose_nothing(textfile_dirs) -> None:
    store = MetricsStore()
    dims = ["run", "delayed", "failed", "duration", "last"]

    def _writer(dim: str) -> None:
        for i in range(20):
            store.write("jobA", dim, i)

    threads = [threading.Thread(target=_writer, args=(d,)) for d in dims]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.read_samples("jobA") == {d: "19" for d in dims}
    assert store.read("jobA").count(b"# HELP cronjob") == 1


def test_readers_only_see_complete_files(textfile_dirs) -> None:
    textfile_dir, _ = textfile_dirs
    dest = textfile_dir / "jobA.prom"
    store = MetricsStore()

    # Long lines make a torn write easy to spot.
    values = [str(i) * 2000 for i in range(1, 10)] * 5
    states = {b""}
    content = b""
    for value in values:
        content = merge(content, "jobA", "duration", value)
        states.add(content)

    done = threading.Event()
    reads = 0
    torn: list[bytes] = []

    def _reader() -> None:
        nonlocal reads
        while True:
            try:
                seen = dest.read_bytes()
            except FileNotFoundError:
                seen = b""
            reads += 1
            if seen not in states:
                torn.append(seen)
            if done.is_set():
                break

    reader = threading.Thread(target=_reader)
    reader.start()
    try:
        for value in values:
            assert store.write("jobA", "duration", value) is True
    finally:
        done.set()
        reader.join()

    assert reads > 0
    assert torn == []


@pytest.mark.parametrize("job", ["a.b", "nightly-backup", "job with spaces"])
def test_job_names_become_file_names(textfile_dirs, job: str) -> None:
    textfile_dir, _ = textfile_dirs
    assert MetricsStore().write(job, "run", 1) is True
    assert (textfile_dir / f"{job}.prom").is_file()
