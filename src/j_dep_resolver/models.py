"""Pydantic models for Maven coordinates and resolution results."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


UNSPECIFIED_VERSION = "(unspecified)"
POM_PACKAGING = "pom"
JAR_PACKAGING = "jar"


def dependency_key(group_id: str, artifact_id: str) -> str:
    """Return the `groupId:artifactId` key identifying a dependency regardless of version."""
    return f"{group_id}:{artifact_id}"


def split_key(key: str) -> tuple[str, str] | None:
    """Split a dependency key (or a longer notation) into groupId and artifactId.

    Returns:
        `(group_id, artifact_id)`, or None when the key has fewer than two parts.
    """
    parts = (key or "").split(":")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


class Scope(str, Enum):
    """Maven dependency scope, ordered by priority (compile wins)."""

    COMPILE = "compile"
    RUNTIME = "runtime"
    PROVIDED = "provided"
    TEST = "test"

    @classmethod
    def parse(cls, value: str | None) -> Scope | None:
        """Map POM scope text onto a Scope.

        `system` behaves like `provided`. Blank, `import` and unknown values
        return None, which the scope merger ignores.
        """
        if value is None:
            return None
        v = value.strip().lower()
        if v == "system":
            return cls.PROVIDED
        for scope in cls:
            if scope.value == v:
                return scope
        return None


class BucketType(str, Enum):
    """Closed set of target buckets a resolved artifact can land in."""

    API = "api"
    IMPLEMENTATION = "implementation"
    RUNTIME_ONLY = "runtimeOnly"
    COMPILE_ONLY = "compileOnly"
    TEST = "test"
    UNKNOWN = "unknown"


class BucketNames(BaseModel):
    """Concrete bucket names used by the consuming build system."""

    model_config = ConfigDict(frozen=True)

    api: str = "api"
    implementation: str = "implementation"
    runtime_only: str = "runtimeOnly"
    compile_only: str = "compileOnly"
    test: str = "testImplementation"

    def name_for(self, bucket: BucketType) -> str:
        """Return the configured name for a bucket type; UNKNOWN maps to implementation."""
        if bucket is BucketType.API:
            return self.api
        if bucket is BucketType.RUNTIME_ONLY:
            return self.runtime_only
        if bucket is BucketType.COMPILE_ONLY:
            return self.compile_only
        if bucket is BucketType.TEST:
            return self.test
        return self.implementation


class Coordinate(BaseModel):
    """Identity and metadata for one artifact.

    Equality and hashing use `(group_id, artifact_id)` only: two coordinates
    with different versions are the same dependency for map-keying purposes.
    Instances are immutable; use `with_test_context` to stamp a new value.
    """

    model_config = ConfigDict(frozen=True)

    group_id: str = ""
    artifact_id: str = ""
    version: str | None = None
    packaging: str = JAR_PACKAGING
    scope: Scope | None = None
    pom_path: Path | None = None
    test_context: bool = False

    @property
    def key(self) -> str:
        return dependency_key(self.group_id, self.artifact_id)

    @property
    def notation(self) -> str:
        """Return `groupId:artifactId:version`."""
        return f"{self.key}:{self.version}"

    def is_valid(self) -> bool:
        return all((v or "").strip() for v in (self.group_id, self.artifact_id, self.version))

    def is_bom(self) -> bool:
        return self.packaging == POM_PACKAGING

    def with_test_context(self, test_context: bool) -> Coordinate:
        if self.test_context == test_context:
            return self
        return self.model_copy(update={"test_context": test_context})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Coordinate):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.notation


class BomResult(BaseModel):
    """Outcome of one BOM expansion pass.

    Attributes:
        managed_versions: DependencyKey -> version declared by the last BOM that managed it.
        bom_managed_deps: `group:artifact:version` of each BOM -> managed entries it declared.
        processed_boms: DependencyKeys of every BOM that was expanded.
        expanded_dependencies: Seed keys followed by every managed key, in discovery order.
    """

    model_config = ConfigDict(frozen=True)

    managed_versions: dict[str, str] = Field(default_factory=dict)
    bom_managed_deps: dict[str, list[str]] = Field(default_factory=dict)
    processed_boms: frozenset[str] = frozenset()
    expanded_dependencies: tuple[str, ...] = ()


class TransitiveResult(BaseModel):
    """Partition of the resolved artifact set after transitive resolution."""

    model_config = ConfigDict(frozen=True)

    main_dependencies: frozenset[str] = frozenset()
    test_dependencies: frozenset[str] = frozenset()
    skipped_dependencies: frozenset[str] = frozenset()


class DecisionKind(str, Enum):
    NO_CHANGE = "no-change"
    OVERRIDE = "override"
    APPLY_MANAGED = "apply-managed"


class VersionDecision(BaseModel):
    """Auditable version decision for one dependency key."""

    model_config = ConfigDict(frozen=True)

    key: str
    kind: DecisionKind
    original_version: str
    target_version: str | None = None
    message: str = ""


class BucketAssignment(BaseModel):
    """Buckets one resolved artifact was assigned to."""

    model_config = ConfigDict(frozen=True)

    key: str
    coordinate: Coordinate
    buckets: tuple[str, ...]
    reason: str

    @property
    def notation(self) -> str:
        return f"{self.key}:{self.coordinate.version}"
