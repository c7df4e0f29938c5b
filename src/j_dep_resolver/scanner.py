from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path


def _walk(root: Path, max_depth: int | None) -> Iterator[Path]:
    """Yield files under root, descending at most `max_depth` directory levels."""
    base_depth = len(root.parts)
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        depth = len(current.parts) - base_depth
        if max_depth is not None and depth >= max_depth:
            dirnames[:] = []
        dirnames.sort()
        for name in sorted(filenames):
            yield current / name


def is_pom_file(path: Path) -> bool:
    name = path.name.lower()
    return name == "pom.xml" or name.endswith(".pom")


def find_pom_files(root: Path, max_depth: int | None = None) -> list[Path]:
    """Find Maven POM files under root (pom.xml and *.pom).

    Args:
        root: A directory to scan recursively, or a single pom file.
        max_depth: Maximum directory depth below root; None means unlimited.

    Returns:
        Sorted unique list of POM files. A missing root yields an empty list.
    """
    if root.is_file():
        return [root]
    if not root.is_dir():
        return []

    poms = [p for p in _walk(root, max_depth) if is_pom_file(p)]
    return sorted(set(poms))


def iter_jar_files(root: Path, max_depth: int | None = None) -> Iterator[Path]:
    """Yield `*.jar` files under root."""
    if not root.is_dir():
        return
    for p in _walk(root, max_depth):
        if p.suffix == ".jar":
            yield p
