"""Numeric-segment aware ordering of Maven version strings."""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import cmp_to_key


_SEGMENT_SPLIT_RE = re.compile(r"[.\-]")


def _compare_part(a: str, b: str) -> int:
    a_numeric = (a.isascii() and a.isdigit()) or not a
    b_numeric = (b.isascii() and b.isdigit()) or not b

    if a_numeric and b_numeric:
        ia = int(a or 0)
        ib = int(b or 0)
        return (ia > ib) - (ia < ib)

    # A numeric segment outranks a qualifier: 1.0 > 1.0-SNAPSHOT.
    if a_numeric:
        return 1
    if b_numeric:
        return -1

    return (a > b) - (a < b)


def compare_versions(a: str | None, b: str | None) -> int:
    """Compare two version strings segment by segment.

    Segments are separated by `.` or `-`. Missing segments count as `0`,
    numeric segments compare as integers and beat non-numeric ones, and two
    non-numeric segments compare lexicographically. None sorts lowest.

    Returns:
        A negative number, zero or a positive number, like `cmp`.
    """
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1

    pa = _SEGMENT_SPLIT_RE.split(a.strip())
    pb = _SEGMENT_SPLIT_RE.split(b.strip())
    for i in range(max(len(pa), len(pb))):
        sa = pa[i] if i < len(pa) else "0"
        sb = pb[i] if i < len(pb) else "0"
        cmp = _compare_part(sa, sb)
        if cmp != 0:
            return cmp
    return 0


def is_newer(candidate: str | None, current: str | None) -> bool:
    return compare_versions(candidate, current) > 0


version_sort_key = cmp_to_key(compare_versions)


def max_version(versions: Iterable[str | None]) -> str | None:
    """Return the highest non-blank version, or None when there is none.

    On ties the first occurrence wins.
    """
    best: str | None = None
    for v in versions:
        if v is None or not v.strip():
            continue
        if best is None or is_newer(v, best):
            best = v
    return best


def looks_like_version(text: str | None) -> bool:
    """Tell whether a file-name suffix such as `1.2.3` or `2.0-beta` is a version."""
    if not text or not text[0].isdigit():
        return False
    return any(part.isdigit() for part in _SEGMENT_SPLIT_RE.split(text))
