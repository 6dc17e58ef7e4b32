# cronmanager/cli.py
import argparse
from typing import List, Optional

from cronmanager import __version__
from cronmanager.constants import (
    DEFAULT_TIMEOUT_SECONDS,
    FORBIDDEN_JOB_NAME_CHARS,
    IDLE_FOR_SECONDS,
)

USAGE_EXAMPLE = (
    "Example: cronmanager -c \"/usr/bin/php /var/www/app/console broadcast:entities:updated "
    "-e project -l 20000\" -n update_entities_cron -t 3600 -l /path/to/log"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cronmanager",
        description=(
            "Run a cron job and publish its state (running, failed, duration, "
            "delayed, last seen) for the node_exporter textfile collector."
        ),
        epilog=USAGE_EXAMPLE,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--command",
        required=True,
        help="[Required] The cron job command.",
    )
    parser.add_argument(
        "-n",
        "--name",
        required=True,
        help="[Required] The job name to appear in the alarm.",
    )
    parser.add_argument(
        "-l",
        "--log-file",
        default=None,
        help="[Optional] The log file to store the cron output.",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=DEFAULT_TIMEOUT_SECONDS,
        help="[Optional] Seconds after which the job is considered delayed.",
    )
    parser.add_argument(
        "-i",
        "--idle",
        action="store_true",
        help=(
            f"Keep the job reported as running for at least {IDLE_FOR_SECONDS} seconds "
            "so Prometheus can notice it ran."
        ),
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Supervisor log level (defaults to CRONMANAGER_LOG_LEVEL, then INFO).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"CronManager version {__version__}",
    )
    return parser


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse and validate command line arguments; exits with usage on error."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command.strip():
        parser.error("-c/--command cannot be empty.")
    if not args.name:
        parser.error("-n/--name cannot be empty.")
    bad = [c for c in FORBIDDEN_JOB_NAME_CHARS if c in args.name]
    if bad:
        parser.error(f"-n/--name cannot contain {', '.join(repr(c) for c in bad)}.")
    if args.timeout <= 0:
        parser.error("timeout must be greater than 0.")

    return args
