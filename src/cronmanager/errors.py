from __future__ import annotations


class CronManagerError(Exception):
    """Base class for errors that stop the supervisor itself."""


class ConfigurationError(CronManagerError):
    """
    The invocation cannot be run as given.

    Raised before any metric is written: missing or malformed job name or
    command, non-positive timeout, a command binary that cannot be executed,
    or a log file that cannot be opened.
    """


class LaunchError(CronManagerError):
    """
    The child process could not be started.

    No run/failed samples are written for a launch failure: the job never
    ran, so reporting it as a failed run would be misleading.
    """


__all__ = ["CronManagerError", "ConfigurationError", "LaunchError"]
