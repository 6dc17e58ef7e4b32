# cronmanager/main.py
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cronmanager import cli
from cronmanager.errors import CronManagerError
from cronmanager.logging_config import configure_logging
from cronmanager.monitor import JobRun
from cronmanager.runner import JobRunner
from cronmanager.store import MetricsStore

logger = logging.getLogger("cronmanager.main")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the cronmanager console script.

    Returns 0 once the job has been supervised, whatever its own exit status;
    the outcome is reported through the failed sample. Returns 1 when the job
    could not be run at all.
    """
    args = cli.parse_arguments(argv)

    configure_logging(args.log_level)

    job_run = JobRun(
        name=args.name,
        command=args.command,
        timeout_seconds=args.timeout,
        log_file=Path(args.log_file) if args.log_file else None,
        idle=args.idle,
    )
    store = MetricsStore()
    logger.debug(f"Publishing metrics for '{job_run.name}' to {store.destination_path(job_run.name)}")

    try:
        JobRunner(job_run, store).run()
    except CronManagerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
