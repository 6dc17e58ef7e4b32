"""Supervise a cron job and publish its state as node_exporter textfile metrics."""

__version__ = "1.1.18"

__all__ = ["__version__"]
