"""The consuming build unit: its identity and declared dependencies.

A build unit can be described by a JSON manifest::

    {
      "group": "org.example",
      "name": "app",
      "modules": [{"group": "org.example", "name": "app-core"}],
      "dependencies": [
        {"group_id": "org.slf4j", "artifact_id": "slf4j-api", "version": "2.0.9", "bucket": "implementation"},
        {"group_id": "org.junit", "artifact_id": "junit-bom", "version": "5.10.0", "bucket": "testImplementation"}
      ]
    }

or by a Maven `pom.xml`, whose scopes are mapped onto bucket names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from j_dep_resolver.exceptions import DeclarationError, JDepError
from j_dep_resolver.models import BucketType, dependency_key
from j_dep_resolver.parser import PomParser


# Maven scope -> bucket name used when a pom.xml describes the build unit.
SCOPE_BUCKETS = {
    "compile": "implementation",
    "provided": "compileOnly",
    "runtime": "runtimeOnly",
    "test": "testImplementation",
    "system": "compileOnly",
}
PLATFORM_BUCKET = "platform"


class DeclarationInfo(BaseModel):
    """A bucket a dependency was declared in, with its classified type."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: BucketType
    test_only: bool = False


def classify_bucket_name(name: str) -> DeclarationInfo:
    """Classify a bucket name such as `testImplementation` or `runtimeOnly`."""
    n = name.lower()
    test_only = "test" in n
    if test_only:
        bucket_type = BucketType.TEST
    elif "implementation" in n:
        bucket_type = BucketType.IMPLEMENTATION
    elif "runtime" in n:
        bucket_type = BucketType.RUNTIME_ONLY
    elif "compileonly" in n or "provided" in n:
        bucket_type = BucketType.COMPILE_ONLY
    elif "api" in n:
        bucket_type = BucketType.API
    else:
        bucket_type = BucketType.UNKNOWN
    return DeclarationInfo(name=name, type=bucket_type, test_only=test_only)


class ModuleRef(BaseModel):
    group: str
    name: str

    @property
    def key(self) -> str:
        return dependency_key(self.group, self.name)


class DeclaredDependency(BaseModel):
    """One dependency as the build unit declares it.

    `bucket` is None when the dependency is requested without naming a bucket;
    the classifier then decides where it goes.
    """

    group_id: str
    artifact_id: str
    version: str | None = None
    bucket: str | None = None

    @property
    def key(self) -> str:
        return dependency_key(self.group_id, self.artifact_id)


class BuildUnit(BaseModel):
    group: str
    name: str
    modules: list[ModuleRef] = Field(default_factory=list)
    dependencies: list[DeclaredDependency] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return dependency_key(self.group, self.name)

    def self_keys(self) -> set[str]:
        """Keys that identify this unit or one of its sibling modules."""
        return {self.key, *(m.key for m in self.modules)}


@dataclass
class DeclaredDependencies:
    """Everything the resolution pipeline needs to know about declarations."""

    keys: list[str] = field(default_factory=list)
    requested_versions: dict[str, list[str | None]] = field(default_factory=dict)
    explicit_buckets: dict[str, list[str]] = field(default_factory=dict)
    declarations: dict[str, list[DeclarationInfo]] = field(default_factory=dict)
    test_flags: dict[str, bool] = field(default_factory=dict)

    @property
    def test_keys(self) -> set[str]:
        return {k for k, flag in self.test_flags.items() if flag}


def collect_declared(unit: BuildUnit) -> DeclaredDependencies:
    """Index the unit's declarations by dependency key.

    A key is test-flagged as soon as one of its buckets is a test bucket.
    """
    out = DeclaredDependencies()
    for dep in unit.dependencies:
        if not dep.group_id.strip() or not dep.artifact_id.strip():
            continue
        key = dep.key
        if key not in out.requested_versions:
            out.keys.append(key)
        versions = out.requested_versions.setdefault(key, [])
        if dep.version not in versions:
            versions.append(dep.version)

        if dep.bucket is None:
            continue
        info = classify_bucket_name(dep.bucket)
        buckets = out.explicit_buckets.setdefault(key, [])
        if dep.bucket not in buckets:
            buckets.append(dep.bucket)
            out.declarations.setdefault(key, []).append(info)

        if info.test_only:
            out.test_flags[key] = True
        else:
            out.test_flags.setdefault(key, False)
    return out


def _load_json(path: Path) -> BuildUnit:
    try:
        return BuildUnit.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise DeclarationError(f"Cannot read declaration file: {path}") from exc
    except ValidationError as exc:
        raise DeclarationError(f"Invalid declaration file {path}: {exc}") from exc


def _load_pom(path: Path, parser: PomParser) -> BuildUnit:
    coord = parser.parse_pom(path)
    if coord is None:
        raise DeclarationError(f"Cannot read build unit POM: {path}")

    dependencies: list[DeclaredDependency] = []

    # Imported BOMs surface as pom-packaged managed entries without a scope.
    for managed in parser.parse_dependency_management(path):
        if managed.is_bom() and managed.scope is None:
            dependencies.append(
                DeclaredDependency(
                    group_id=managed.group_id,
                    artifact_id=managed.artifact_id,
                    version=managed.version,
                    bucket=PLATFORM_BUCKET,
                )
            )

    for dep in parser.parse_declared_dependencies(path):
        bucket = SCOPE_BUCKETS.get(dep.scope.value, "implementation") if dep.scope else "implementation"
        dependencies.append(
            DeclaredDependency(
                group_id=dep.group_id,
                artifact_id=dep.artifact_id,
                version=dep.version,
                bucket=bucket,
            )
        )

    return BuildUnit(group=coord.group_id, name=coord.artifact_id, dependencies=dependencies)


def load_build_unit(path: Path, parser: PomParser | None = None) -> BuildUnit:
    """Load a build unit from a JSON manifest or a POM file.

    Raises:
        DeclarationError: If the file is missing, unreadable or invalid.
    """
    if not path.is_file():
        raise DeclarationError(f"Declaration file not found: {path}")
    if path.suffix == ".json":
        return _load_json(path)
    try:
        return _load_pom(path, parser or PomParser())
    except DeclarationError:
        raise
    except JDepError as exc:
        raise DeclarationError(str(exc)) from exc
