"""Expand Bill-of-Materials POMs into managed versions."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable

from j_dep_resolver.index import ArtifactLookup
from j_dep_resolver.models import BomResult, Coordinate, split_key
from j_dep_resolver.parser import PomParser


logger = logging.getLogger(__name__)


class BomExpander:
    """Breadth-first expansion of BOMs reachable from a set of seed keys.

    Each BOM is expanded at most once, so cyclic or diamond-shaped BOM
    imports terminate. When two BOMs manage the same key, the one processed
    last wins.
    """

    def __init__(self, lookup: ArtifactLookup, parser: PomParser) -> None:
        self.lookup = lookup
        self.parser = parser

    def _resolve_bom(self, entry: Coordinate) -> Coordinate | None:
        if entry.pom_path is not None:
            return entry
        found = self.lookup.find(entry.group_id, entry.artifact_id)
        if found is None or not found.is_bom():
            logger.debug("Nested BOM %s is not installed", entry.key)
            return None
        return found

    def process(self, seed_keys: Iterable[str]) -> BomResult:
        seeds = [k for k in seed_keys if k]
        expanded: dict[str, None] = dict.fromkeys(seeds)
        managed_versions: dict[str, str] = {}
        bom_managed_deps: dict[str, list[str]] = {}
        processed: set[str] = set()
        queue: deque[Coordinate] = deque()

        for key in seeds:
            parts = split_key(key)
            if parts is None:
                logger.debug("Ignoring malformed dependency key %r", key)
                continue
            coord = self.lookup.find(*parts)
            if coord is not None and coord.is_bom() and coord.key not in processed:
                processed.add(coord.key)
                queue.append(coord)

        while queue:
            bom = queue.popleft()
            if bom.pom_path is None:
                continue

            bom_gav = f"{bom.key}:{bom.version or 'unknown'}"
            entries: list[str] = []
            for dep in self.parser.parse_dependency_management(bom.pom_path):
                expanded.setdefault(dep.key, None)
                if dep.version and dep.version.strip():
                    managed_versions[dep.key] = dep.version
                    entries.append(f"{dep.key}:{dep.version}")
                else:
                    entries.append(dep.key)

                if dep.is_bom() and dep.key not in processed:
                    nested = self._resolve_bom(dep)
                    if nested is not None:
                        processed.add(dep.key)
                        queue.append(nested)

            bom_managed_deps[bom_gav] = entries
            logger.debug("BOM %s manages %d dependencies", bom_gav, len(entries))

        if processed:
            logger.info("Processed %d BOMs, %d managed versions", len(processed), len(managed_versions))

        return BomResult(
            managed_versions=managed_versions,
            bom_managed_deps=bom_managed_deps,
            processed_boms=frozenset(processed),
            expanded_dependencies=tuple(expanded),
        )
