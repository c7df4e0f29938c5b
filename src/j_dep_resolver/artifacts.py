"""Verify installed binaries and resolve declared keys to system artifacts."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Sequence
from pathlib import Path

from j_dep_resolver.index import ArtifactLookup
from j_dep_resolver.models import POM_PACKAGING, Coordinate, Scope, split_key
from j_dep_resolver.parser import PomParser, has_placeholder
from j_dep_resolver.scanner import iter_jar_files


logger = logging.getLogger(__name__)

GRADLE_PLUGIN_SUFFIX = ".gradle.plugin"


class ArtifactVerifier:
    """Check that the binary of a coordinate is present in a jar directory."""

    def __init__(self, jar_dirs: Sequence[Path], search_depth: int = 3) -> None:
        self.jar_dirs = list(jar_dirs)
        self.search_depth = search_depth

    @staticmethod
    def _matches(path: Path, artifact_id: str, version: str | None) -> bool:
        if path.suffix != ".jar":
            return False
        base = path.stem
        if base == artifact_id:
            return True
        if not base.startswith(artifact_id + "-"):
            return False
        suffix = base[len(artifact_id) + 1 :]
        return suffix == version or any(ch.isdigit() for ch in suffix)

    def exists(self, coord: Coordinate | None) -> bool:
        if coord is None or not coord.is_valid():
            return False
        if coord.packaging == POM_PACKAGING:
            return True

        names = (f"{coord.artifact_id}.jar", f"{coord.artifact_id}-{coord.version}.jar")
        for jar_dir in self.jar_dirs:
            if any((jar_dir / name).is_file() for name in names):
                return True

        for jar_dir in self.jar_dirs:
            for jar in iter_jar_files(jar_dir, self.search_depth):
                if self._matches(jar, coord.artifact_id, coord.version):
                    return True
        return False


def plugin_artifact_candidates(plugin_id: str) -> list[str]:
    """Return the artifact ids tried, in order, for a Gradle plugin id."""
    base = plugin_id.rsplit(".", 1)[-1]
    candidates = [
        plugin_id + GRADLE_PLUGIN_SUFFIX,
        plugin_id,
        f"{base}-plugin",
        f"gradle-{base}",
        f"gradle-{base}-plugin",
        f"{base}-gradle-plugin",
        f"gradle-plugin-{base}",
        f"{base}-gradle",
    ]
    if "." in plugin_id:
        wd = plugin_id.split(".", 1)[1].replace(".", "-")
        candidates += [
            wd,
            f"{wd}-plugin",
            f"gradle-{wd}",
            f"gradle-{wd}-plugin",
            f"{wd}-gradle-plugin",
        ]
    return list(dict.fromkeys(candidates))


class SystemArtifactScanner:
    """Resolve declared dependency keys into verified installed coordinates.

    Besides the requested keys, `provided` and `runtime` dependencies of every
    found POM are resolved too, since the consuming build needs them on the
    classpath but Maven does not propagate them transitively.
    """

    def __init__(self, lookup: ArtifactLookup, parser: PomParser, verifier: ArtifactVerifier) -> None:
        self.lookup = lookup
        self.parser = parser
        self.verifier = verifier
        self.not_found: set[str] = set()

    def scan(self, keys: Iterable[str]) -> dict[str, Coordinate]:
        self.not_found = set()
        found: dict[str, Coordinate] = {}
        processed: set[str] = set()
        queue: deque[str] = deque(keys)

        while queue:
            key = queue.popleft()
            if key in processed:
                continue
            processed.add(key)
            if key in found:
                continue

            if key.endswith(GRADLE_PLUGIN_SUFFIX):
                coord = self._resolve_plugin(key)
            else:
                coord = self._resolve_regular(key)
            if coord is None:
                continue

            found[key] = coord
            if coord.pom_path is not None:
                for dep in self.parser.parse_dependencies(coord.pom_path):
                    if dep.scope in (Scope.PROVIDED, Scope.RUNTIME) and dep.key not in found and dep.key not in queue:
                        queue.append(dep.key)

        if self.not_found:
            logger.info("%d declared dependencies not installed", len(self.not_found))
        return found

    def _resolve_regular(self, key: str) -> Coordinate | None:
        parts = split_key(key)
        if parts is None:
            return None
        group_id, artifact_id = parts
        if has_placeholder(group_id) or has_placeholder(artifact_id):
            logger.debug("Skipping unresolved placeholder key %s", key)
            return None

        coord = self.lookup.find(group_id, artifact_id)
        if coord is None or not self.verifier.exists(coord):
            logger.warning("Dependency not found on system: %s", key)
            self.not_found.add(key)
            return None
        return coord

    def _resolve_plugin(self, key: str) -> Coordinate | None:
        parts = key.split(":")
        if len(parts) != 2:
            return None
        coord = self.find_plugin_artifact(parts[0])
        if coord is None or not self.verifier.exists(coord):
            logger.warning("Gradle plugin not found on system: %s", key)
            self.not_found.add(key)
            return None
        return coord

    def find_plugin_artifact(self, plugin_id: str) -> Coordinate | None:
        for artifact_id in plugin_artifact_candidates(plugin_id):
            coord = self.lookup.find(plugin_id, artifact_id)
            if coord is not None and self.verifier.exists(coord):
                return coord

        for coord in self.lookup.find_all_for_group(plugin_id):
            if "gradle" in coord.artifact_id or "plugin" in coord.artifact_id:
                return coord
        return None
