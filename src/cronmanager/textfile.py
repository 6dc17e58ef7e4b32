"""
Merge a single cronjob sample into the bytes of a textfile-collector file.

Every function here is pure: no I/O, no clock, no locking. The store reads
the current file, calls merge(), and publishes the result.
"""

from __future__ import annotations

from typing import Iterator, Optional, Tuple

from cronmanager.codec import (
    Sample,
    decode_sample,
    encode_sample,
    header_lines,
    is_type_line,
    sample_needle,
)

_NL = b"\n"


def _find_line(content: bytes, needle: bytes, start: int = 0) -> Optional[Tuple[int, int]]:
    """
    Return (start, end) of the first line at or after `start` that begins with
    `needle`. `end` points past the newline, or at len(content) for a last line
    without one.
    """
    pos = content.find(needle, start)
    while pos != -1:
        if pos == 0 or content[pos - 1 : pos] == _NL:
            eol = content.find(_NL, pos)
            return pos, len(content) if eol == -1 else eol + 1
        pos = content.find(needle, pos + 1)
    return None


def _drop_lines(content: bytes, needle: bytes) -> bytes:
    out = []
    cursor = 0
    while True:
        span = _find_line(content, needle, cursor)
        if span is None:
            break
        out.append(content[cursor : span[0]])
        cursor = span[1]
    out.append(content[cursor:])
    return b"".join(out)


def has_type_header(content: bytes) -> bool:
    text = content.decode("utf-8", errors="replace")
    return any(is_type_line(line) for line in text.split("\n"))


def merge(existing: bytes, job: str, dimension: str, value: object) -> bytes:
    """
    Return `existing` with the (job, dimension) sample set to `value`.

    An existing line for the key is replaced in place; any later duplicate of
    it is dropped. Otherwise the line is appended, preceded by the HELP and
    TYPE headers when the file does not declare the family yet. The result
    always ends with a newline.
    """
    needle = sample_needle(job, dimension).encode("utf-8")
    new_line = encode_sample(job, dimension, value).encode("utf-8") + _NL

    span = _find_line(existing, needle)
    if span is not None:
        start, end = span
        return existing[:start] + new_line + _drop_lines(existing[end:], needle)

    out = existing
    if out and not out.endswith(_NL):
        out += _NL
    if not has_type_header(existing):
        out += b"".join(h.encode("utf-8") + _NL for h in header_lines())
    return out + new_line


def iter_samples(content: bytes) -> Iterator[Sample]:
    """Yield the cronjob samples found in `content`, in file order."""
    for raw in content.decode("utf-8", errors="replace").split("\n"):
        sample = decode_sample(raw.rstrip("\r"))
        if sample is not None:
            yield sample


__all__ = ["merge", "has_type_header", "iter_samples"]
