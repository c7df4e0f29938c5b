"""Locate POM files on disk by groupId/artifactId using file-name variants."""

from __future__ import annotations

import logging
from pathlib import Path

from j_dep_resolver.models import Coordinate
from j_dep_resolver.parser import PomParser
from j_dep_resolver.scanner import find_pom_files
from j_dep_resolver.versions import is_newer, looks_like_version, version_sort_key


logger = logging.getLogger(__name__)


def name_variants(group_id: str, artifact_id: str) -> list[str]:
    """Return the POM base names an artifact may be installed under.

    Example: `org.apache.commons:commons-lang3` yields `commons-lang3`,
    `apache-commons-commons-lang3` and `apache-commons-lang3`.
    """
    variants = [artifact_id]
    parts = group_id.split(".")
    if len(parts) > 1:
        variants.append("-".join(parts[1:]) + "-" + artifact_id)
        if len(parts) > 2:
            variants.append(parts[1] + "-" + artifact_id)
    return list(dict.fromkeys(variants))


def matches_variant(path: Path, variant: str, artifact_id: str) -> bool:
    """Tell whether a `.pom` file name is `variant`, `variant-<version>` or
    `variant-<version>-<artifactId>`."""
    if not path.name.endswith(".pom"):
        return False
    base = path.name[: -len(".pom")]
    if base == variant:
        return True
    if not base.startswith(variant + "-"):
        return False

    suffix = base[len(variant) + 1 :]
    if looks_like_version(suffix):
        return True
    if suffix.endswith(artifact_id) and len(suffix) > len(artifact_id) + 1:
        return looks_like_version(suffix[: -len(artifact_id) - 1])
    return False


class PomFinder:
    """Filesystem lookup that does not require building an index first.

    Every call walks the POM directory, so this suits one-off queries such as
    the `bom` command; the resolution pipeline uses `ArtifactIndex`.
    """

    def __init__(self, poms_dir: Path, parser: PomParser | None = None, max_depth: int = 3) -> None:
        self.poms_dir = poms_dir
        self.parser = parser or PomParser()
        self.max_depth = max_depth

    def _candidates(self) -> list[Path]:
        return [p for p in find_pom_files(self.poms_dir, self.max_depth) if p.name.endswith(".pom")]

    def find(self, group_id: str, artifact_id: str) -> Coordinate | None:
        variants = name_variants(group_id, artifact_id)
        best: Coordinate | None = None

        for pom in self._candidates():
            if not any(matches_variant(pom, v, artifact_id) for v in variants):
                continue
            coord = self.parser.parse_pom(pom)
            if coord is None or not coord.is_valid():
                logger.debug("Invalid coordinate in %s", pom)
                continue
            if coord.group_id != group_id or coord.artifact_id != artifact_id:
                continue
            if best is None or is_newer(coord.version, best.version):
                best = coord

        if best is None:
            logger.debug("No POM found for %s:%s", group_id, artifact_id)
        return best

    def find_all_for_group(self, group_id: str) -> list[Coordinate]:
        found: dict[str, Coordinate] = {}
        for pom in self._candidates():
            coord = self.parser.parse_pom(pom)
            if coord is None or not coord.is_valid() or coord.group_id != group_id:
                continue
            existing = found.get(coord.key)
            if existing is None or is_newer(coord.version, existing.version):
                found[coord.key] = coord
        return sorted(found.values(), key=lambda c: (c.artifact_id, version_sort_key(c.version)))
