"""Parse Maven POM files using lxml.

`PomParser` yields an "effective enough" view of a POM: groupId/version are
inherited from the parent chain, `${...}` placeholders are resolved from the
merged properties, and `<dependencyManagement>` fills in missing versions and
scopes of direct dependencies. It is not a full Maven model builder.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from lxml import etree

from j_dep_resolver.exceptions import JDepError, PomModelError, PomNotFoundError, PomParseError
from j_dep_resolver.models import JAR_PACKAGING, POM_PACKAGING, Coordinate, Scope, dependency_key


logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")
_MAX_PLACEHOLDER_PASSES = 20
_IMPORT_SCOPE = "import"

_DEFAULT_PROPERTIES = {
    "project.build.sourceEncoding": "UTF-8",
    "project.reporting.outputEncoding": "UTF-8",
}


@dataclass(frozen=True)
class RawDependency:
    """A `<dependency>` entry as written in the XML (placeholders unresolved)."""

    group_id: str | None
    artifact_id: str | None
    version: str | None = None
    scope: str | None = None
    dep_type: str | None = None
    optional: bool | None = None


@dataclass
class PomModel:
    """Facts read from a single POM file, without any inheritance applied."""

    path: Path
    artifact_id: str
    group_id: str | None = None
    version: str | None = None
    packaging: str | None = None
    parent_group_id: str | None = None
    parent_artifact_id: str | None = None
    parent_version: str | None = None
    parent_relative_path: str | None = None
    properties: dict[str, str] = field(default_factory=dict)
    dependencies: list[RawDependency] = field(default_factory=list)
    managed_dependencies: list[RawDependency] = field(default_factory=list)

    @property
    def has_parent(self) -> bool:
        return self.parent_artifact_id is not None


def _text_first(node: etree._Element, xpath_expr: str) -> str | None:
    """Get text of the first matching element using namespace-agnostic XPath.

    Args:
        node: Root element to query under.
        xpath_expr: XPath expression (should use local-name()).

    Returns:
        Text content if found and non-empty, otherwise None.
    """
    found = node.xpath(xpath_expr)
    if not found:
        return None
    first = found[0]
    if isinstance(first, etree._Element):
        text = (first.text or "").strip()
        return text or None
    if isinstance(first, str):
        text = first.strip()
        return text or None
    return None


def _bool_text(value: str | None) -> bool | None:
    if value is None:
        return None
    v = value.strip().lower()
    if v == "true":
        return True
    if v == "false":
        return False
    return None


def _parse_xml(path: Path) -> etree._Element:
    """Parse an XML file and return its root element.

    Raises:
        PomNotFoundError: If the file does not exist.
        PomParseError: If XML cannot be parsed.
    """
    if not path.exists():
        raise PomNotFoundError(f"POM not found: {path}")
    try:
        parser = etree.XMLParser(resolve_entities=False, no_network=True, recover=False)
        tree = etree.parse(str(path), parser=parser)
        return tree.getroot()
    except (OSError, etree.XMLSyntaxError) as exc:
        raise PomParseError(f"Failed to parse POM: {path}") from exc


def resolve_placeholders(value: str | None, props: Mapping[str, str]) -> str | None:
    """Resolve ${...} placeholders using provided properties.

    Unknown placeholders are preserved as-is. Nested references are followed
    for a bounded number of passes so self-referencing properties terminate.
    """
    if value is None:
        return None

    current = value
    for _ in range(_MAX_PLACEHOLDER_PASSES):
        changed = False

        def _sub(m: re.Match[str]) -> str:
            nonlocal changed
            replacement = props.get(m.group(1))
            if replacement is not None:
                changed = True
                return replacement
            return m.group(0)

        current = _PLACEHOLDER_RE.sub(_sub, current)
        if not changed:
            break
    return current


def has_placeholder(value: str | None) -> bool:
    return value is not None and "${" in value


def _parse_properties(root: etree._Element) -> dict[str, str]:
    props: dict[str, str] = {}
    nodes = root.xpath("/*[local-name()='project']/*[local-name()='properties']/*")
    for n in nodes:
        if not isinstance(n, etree._Element):
            continue
        key = etree.QName(n).localname
        val = (n.text or "").strip()
        if key and val:
            props[key] = val
    return props


def _parse_dependency_nodes(root: etree._Element, xpath_expr: str) -> list[RawDependency]:
    deps: list[RawDependency] = []
    for dep in root.xpath(xpath_expr):
        deps.append(
            RawDependency(
                group_id=_text_first(dep, "./*[local-name()='groupId']"),
                artifact_id=_text_first(dep, "./*[local-name()='artifactId']"),
                version=_text_first(dep, "./*[local-name()='version']"),
                scope=_text_first(dep, "./*[local-name()='scope']"),
                dep_type=_text_first(dep, "./*[local-name()='type']"),
                optional=_bool_text(_text_first(dep, "./*[local-name()='optional']")),
            )
        )
    return deps


def read_pom_model(path: str | Path) -> PomModel:
    """Read one POM file into a `PomModel` without resolving inheritance.

    Notes:
        Namespace handling uses `local-name()` XPath so it works with or
        without the Maven XML namespace.

    Raises:
        PomNotFoundError: If the file does not exist.
        PomParseError: If the XML is malformed.
        PomModelError: If `<artifactId>` is missing.
    """
    pom_path = Path(path)
    root = _parse_xml(pom_path)

    artifact_id = _text_first(root, "/*[local-name()='project']/*[local-name()='artifactId']")
    if artifact_id is None:
        raise PomModelError(f"Missing required <artifactId> in {pom_path}")

    parent = "/*[local-name()='project']/*[local-name()='parent']"
    return PomModel(
        path=pom_path,
        artifact_id=artifact_id,
        group_id=_text_first(root, "/*[local-name()='project']/*[local-name()='groupId']"),
        version=_text_first(root, "/*[local-name()='project']/*[local-name()='version']"),
        packaging=_text_first(root, "/*[local-name()='project']/*[local-name()='packaging']"),
        parent_group_id=_text_first(root, f"{parent}/*[local-name()='groupId']"),
        parent_artifact_id=_text_first(root, f"{parent}/*[local-name()='artifactId']"),
        parent_version=_text_first(root, f"{parent}/*[local-name()='version']"),
        parent_relative_path=_text_first(root, f"{parent}/*[local-name()='relativePath']"),
        properties=_parse_properties(root),
        dependencies=_parse_dependency_nodes(
            root,
            "/*[local-name()='project']"
            "/*[local-name()='dependencies']"
            "/*[local-name()='dependency']",
        ),
        managed_dependencies=_parse_dependency_nodes(
            root,
            "/*[local-name()='project']"
            "/*[local-name()='dependencyManagement']"
            "/*[local-name()='dependencies']"
            "/*[local-name()='dependency']",
        ),
    )


class PomParser:
    """Cached POM reader that follows the parent chain.

    Each public method takes the path of a POM file. Results are cached per
    path for the lifetime of the parser, which is meant to live for a single
    resolution run.
    """

    def __init__(self, max_parent_depth: int = 10) -> None:
        self.max_parent_depth = max_parent_depth
        self._models: dict[str, PomModel | None] = {}
        self._coordinates: dict[str, Coordinate | None] = {}
        self._dependencies: dict[str, tuple[Coordinate, ...]] = {}
        self._managed: dict[str, tuple[Coordinate, ...]] = {}

    def _load_model(self, path: Path) -> PomModel | None:
        cache_key = str(path)
        if cache_key in self._models:
            return self._models[cache_key]

        model: PomModel | None
        try:
            model = read_pom_model(path)
        except PomNotFoundError:
            model = None
        except JDepError as exc:
            logger.warning("Skipping unreadable POM %s: %s", path, exc)
            model = None

        self._models[cache_key] = model
        return model

    def _find_parent(self, child: PomModel) -> PomModel | None:
        directory = child.path.parent
        artifact_id = child.parent_artifact_id
        candidates = [directory / f"{artifact_id}.pom"]
        if child.parent_version:
            candidates.append(directory / f"{artifact_id}-{child.parent_version}.pom")
        candidates.append(directory / (child.parent_relative_path or "../pom.xml"))

        for candidate in candidates:
            if candidate.is_dir():
                candidate = candidate / "pom.xml"
            if not candidate.is_file() or candidate.resolve() == child.path.resolve():
                continue
            model = self._load_model(candidate)
            if model is not None and model.artifact_id == artifact_id:
                return model
        return None

    def load_hierarchy(self, path: str | Path) -> list[PomModel]:
        """Return the POM and its parents, outermost parent first.

        Missing parents end the chain silently. An empty list means the POM
        itself could not be read.
        """
        chain: list[PomModel] = []
        seen: set[Path] = set()

        model = self._load_model(Path(path))
        while model is not None and len(chain) <= self.max_parent_depth:
            resolved = model.path.resolve()
            if resolved in seen:
                break
            seen.add(resolved)
            chain.append(model)
            if not model.has_parent:
                break
            model = self._find_parent(model)

        chain.reverse()
        return chain

    @staticmethod
    def _effective_identity(hierarchy: list[PomModel]) -> tuple[str | None, str, str | None, str]:
        child = hierarchy[-1]
        group_id = child.group_id or child.parent_group_id
        version = child.version or child.parent_version
        packaging = child.packaging or JAR_PACKAGING
        return group_id, child.artifact_id, version, packaging

    def _collect_properties(self, hierarchy: list[PomModel]) -> dict[str, str]:
        props: dict[str, str] = dict(_DEFAULT_PROPERTIES)
        for model in hierarchy:
            props.update(model.properties)

        if not hierarchy:
            return props

        group_id, artifact_id, version, packaging = self._effective_identity(hierarchy)
        child = hierarchy[-1]
        builtins = {
            "groupId": group_id,
            "artifactId": artifact_id,
            "version": version,
            "packaging": packaging,
            "parent.groupId": child.parent_group_id,
            "parent.version": child.parent_version,
        }
        for name, value in builtins.items():
            if value:
                props[f"project.{name}"] = value
                props[f"pom.{name}"] = value
                props.setdefault(name, value)
        return props

    def parse_properties(self, path: str | Path) -> dict[str, str]:
        """Return the merged properties of the POM and its parents (child wins)."""
        return self._collect_properties(self.load_hierarchy(path))

    def parse_pom(self, path: str | Path) -> Coordinate | None:
        """Parse the coordinate a POM file describes.

        Returns:
            The coordinate (possibly invalid when groupId/version cannot be
            determined), or None if the file could not be read.
        """
        cache_key = str(path)
        if cache_key in self._coordinates:
            return self._coordinates[cache_key]

        hierarchy = self.load_hierarchy(path)
        coord: Coordinate | None = None
        if hierarchy:
            props = self._collect_properties(hierarchy)
            group_id, artifact_id, version, packaging = self._effective_identity(hierarchy)
            coord = Coordinate(
                group_id=resolve_placeholders(group_id, props) or "",
                artifact_id=artifact_id,
                version=resolve_placeholders(version, props),
                packaging=resolve_placeholders(packaging, props) or JAR_PACKAGING,
                scope=Scope.COMPILE,
                pom_path=Path(path),
            )

        self._coordinates[cache_key] = coord
        return coord

    @staticmethod
    def _resolve_entry(raw: RawDependency, props: Mapping[str, str]) -> RawDependency:
        return RawDependency(
            group_id=resolve_placeholders(raw.group_id, props),
            artifact_id=resolve_placeholders(raw.artifact_id, props),
            version=resolve_placeholders(raw.version, props),
            scope=resolve_placeholders(raw.scope, props),
            dep_type=resolve_placeholders(raw.dep_type, props),
            optional=raw.optional,
        )

    @staticmethod
    def _to_coordinate(entry: RawDependency) -> Coordinate:
        scope = Scope.parse(entry.scope) if entry.scope else Scope.COMPILE
        # An `import` entry is a BOM even when `<type>` is omitted.
        imported = (entry.scope or "").strip().lower() == _IMPORT_SCOPE
        return Coordinate(
            group_id=entry.group_id or "",
            artifact_id=entry.artifact_id or "",
            version=entry.version,
            packaging=entry.dep_type or (POM_PACKAGING if imported else JAR_PACKAGING),
            scope=scope,
        )

    def _managed_entries(
        self, hierarchy: list[PomModel], props: Mapping[str, str]
    ) -> dict[str, RawDependency]:
        managed: dict[str, RawDependency] = {}
        for model in hierarchy:
            for raw in model.managed_dependencies:
                entry = self._resolve_entry(raw, props)
                if not (entry.group_id and entry.artifact_id and entry.version):
                    continue
                managed[dependency_key(entry.group_id, entry.artifact_id)] = entry
        return managed

    def parse_dependency_management(self, path: str | Path) -> list[Coordinate]:
        """Parse the `<dependencyManagement>` section (managed versions only).

        Entries from the child override those inherited from parents. Entries
        without a resolvable groupId, artifactId or version are dropped.
        """
        cache_key = str(path)
        if cache_key not in self._managed:
            hierarchy = self.load_hierarchy(path)
            props = self._collect_properties(hierarchy)
            entries = self._managed_entries(hierarchy, props)
            self._managed[cache_key] = tuple(self._to_coordinate(e) for e in entries.values())
        return list(self._managed[cache_key])

    def _merged_dependencies(self, path: str | Path) -> tuple[Coordinate, ...]:
        cache_key = str(path)
        if cache_key in self._dependencies:
            return self._dependencies[cache_key]

        hierarchy = self.load_hierarchy(path)
        props = self._collect_properties(hierarchy)
        managed = self._managed_entries(hierarchy, props)

        resolved: dict[str, Coordinate] = {}
        for model in hierarchy:
            for raw in model.dependencies:
                entry = self._resolve_entry(raw, props)
                if not entry.group_id or not entry.artifact_id:
                    continue
                key = dependency_key(entry.group_id, entry.artifact_id)
                mgmt = managed.get(key)
                if mgmt is not None:
                    entry = RawDependency(
                        group_id=entry.group_id,
                        artifact_id=entry.artifact_id,
                        version=entry.version or mgmt.version,
                        scope=entry.scope or mgmt.scope,
                        dep_type=entry.dep_type or mgmt.dep_type,
                        optional=entry.optional,
                    )
                resolved[key] = self._to_coordinate(entry)

        self._dependencies[cache_key] = tuple(resolved.values())
        return self._dependencies[cache_key]

    def parse_dependencies(self, path: str | Path) -> list[Coordinate]:
        """Parse direct `<dependencies>` including those inherited from parents.

        Missing versions, scopes and types are filled from the effective
        dependency management. Invalid entries (no version after management)
        are dropped.
        """
        return [c for c in self._merged_dependencies(path) if c.is_valid()]

    def parse_declared_dependencies(self, path: str | Path) -> list[Coordinate]:
        """Like `parse_dependencies`, but keep entries whose version is still unknown.

        A build unit may leave versions to an imported BOM, which is expanded
        later in the resolution.
        """
        return list(self._merged_dependencies(path))
