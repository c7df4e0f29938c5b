"""In-memory index of the POM metadata installed on the system."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol

from j_dep_resolver.models import Coordinate
from j_dep_resolver.parser import PomParser
from j_dep_resolver.versions import is_newer, version_sort_key


logger = logging.getLogger(__name__)


class ArtifactLookup(Protocol):
    """Anything that can locate installed artifacts by groupId/artifactId."""

    def find(self, group_id: str, artifact_id: str) -> Coordinate | None: ...

    def find_all_for_group(self, group_id: str) -> list[Coordinate]: ...


class ArtifactIndex:
    """DependencyKey -> newest Coordinate, plus a per-group listing.

    `build` must be called once per resolution run before any lookup. Calling
    it again replaces the index contents.
    """

    def __init__(self, parser: PomParser | None = None) -> None:
        self.parser = parser or PomParser()
        self._by_key: dict[str, Coordinate] = {}
        self._by_group: dict[str, list[Coordinate]] = {}

    def build(self, pom_files: Iterable[Path]) -> None:
        by_key: dict[str, Coordinate] = {}
        for pom in pom_files:
            coord = self.parser.parse_pom(pom)
            if coord is None or not coord.is_valid():
                logger.debug("Skipping POM without a usable coordinate: %s", pom)
                continue

            existing = by_key.get(coord.key)
            if existing is None or is_newer(coord.version, existing.version):
                by_key[coord.key] = coord

        by_group: dict[str, list[Coordinate]] = {}
        for coord in by_key.values():
            by_group.setdefault(coord.group_id, []).append(coord)
        for coords in by_group.values():
            coords.sort(key=lambda c: (c.artifact_id, version_sort_key(c.version)))

        self._by_key = by_key
        self._by_group = by_group
        logger.info("POM index built: %d artifacts, %d groups", len(by_key), len(by_group))

    def find(self, group_id: str, artifact_id: str) -> Coordinate | None:
        return self._by_key.get(f"{group_id}:{artifact_id}")

    def find_all_for_group(self, group_id: str) -> list[Coordinate]:
        return list(self._by_group.get(group_id, ()))

    def snapshot(self) -> Mapping[str, Coordinate]:
        """Return a read-only copy of the key -> coordinate map."""
        return dict(self._by_key)

    def __len__(self) -> int:
        return len(self._by_key)
