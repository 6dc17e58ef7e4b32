from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cronmanager.constants import DIMENSIONS, HELP_LINE, METRIC_NAME, TYPE_LINE

_NAME_PREFIX = f'{METRIC_NAME}{{name="'
_DIMENSION_SEP = '",dimension="'
_LABELS_END = '"}'


@dataclass(frozen=True)
class Sample:
    job: str
    dimension: str
    value: str


def sample_needle(job: str, dimension: str) -> str:
    """
    Literal prefix identifying the sample line for (job, dimension).

    The needle carries the full label tuple, so one job name being a prefix
    of another never makes their lines collide. Match it as plain text.
    """
    return f"{_NAME_PREFIX}{job}{_DIMENSION_SEP}{dimension}{_LABELS_END}"


def encode_sample(job: str, dimension: str, value: object) -> str:
    """
    Render one gauge line, without trailing newline.

    Label values are written verbatim; callers must keep '"' out of job
    names (the CLI rejects them).
    """
    return f"{sample_needle(job, dimension)} {value}"


def decode_sample(line: str) -> Optional[Sample]:
    """Parse a cronjob sample line. Returns None for headers and foreign lines."""
    line = line.rstrip("\n")
    if not line.startswith(_NAME_PREFIX):
        return None
    rest = line[len(_NAME_PREFIX) :]
    job, sep, rest = rest.partition(_DIMENSION_SEP)
    if not sep:
        return None
    dimension, sep, rest = rest.partition(_LABELS_END)
    if not sep or not rest.startswith(" "):
        return None
    value = rest[1:].strip()
    if not value:
        return None
    return Sample(job=job, dimension=dimension, value=value)


def header_lines() -> tuple[str, str]:
    """HELP and TYPE, in the order they open a fresh family block."""
    return HELP_LINE, TYPE_LINE


def is_type_line(line: str) -> bool:
    """True for the family's TYPE declaration; its presence marks headers as written."""
    return line.rstrip("\r\n") == TYPE_LINE


def is_known_dimension(dimension: str) -> bool:
    return dimension in DIMENSIONS


__all__ = [
    "Sample",
    "sample_needle",
    "encode_sample",
    "decode_sample",
    "header_lines",
    "is_type_line",
    "is_known_dimension",
]
