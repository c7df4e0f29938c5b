"""End-to-end resolution of a build unit against the installed repository.

The pipeline runs a fixed sequence of steps over a shared `ResolutionContext`:

1. collect POM files
2. build the artifact index
3. collect declared dependencies
4. apply BOMs
5. resolve system artifacts
6. resolve transitives and rescan the result
7. reconcile versions
8. classify into buckets

Each step reads what earlier steps left in the context and adds its own
results; nothing is returned until `ResolutionPipeline.run` builds the report.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import networkx as nx
from pydantic import BaseModel, Field

from j_dep_resolver.artifacts import ArtifactVerifier, SystemArtifactScanner
from j_dep_resolver.bom import BomExpander
from j_dep_resolver.classifier import AssignmentReport, BucketClassifier
from j_dep_resolver.config import ResolverConfig
from j_dep_resolver.declarations import BuildUnit, DeclaredDependencies, collect_declared
from j_dep_resolver.index import ArtifactIndex
from j_dep_resolver.models import (
    BomResult,
    BucketAssignment,
    BucketNames,
    Coordinate,
    Scope,
    VersionDecision,
    split_key,
)
from j_dep_resolver.parser import PomParser
from j_dep_resolver.reconcile import SubstitutionLog, VersionReconciler
from j_dep_resolver.scanner import find_pom_files
from j_dep_resolver.transitive import TransitiveProcessor, TransitiveResolver


logger = logging.getLogger(__name__)


class ResolutionReport(BaseModel):
    """Serializable outcome of one resolution run."""

    unit: str
    declared: list[str] = Field(default_factory=list)
    managed_versions: dict[str, str] = Field(default_factory=dict)
    bom_managed_deps: dict[str, list[str]] = Field(default_factory=dict)
    removed_boms: list[str] = Field(default_factory=list)
    artifacts: list[Coordinate] = Field(default_factory=list)
    test_context: list[str] = Field(default_factory=list)
    not_found: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    decisions: list[VersionDecision] = Field(default_factory=list)
    assignments: list[BucketAssignment] = Field(default_factory=list)
    buckets: dict[str, list[str]] = Field(default_factory=dict)
    overrides: list[str] = Field(default_factory=list)
    applies: list[str] = Field(default_factory=list)

    def assignment_for(self, key: str) -> BucketAssignment | None:
        return next((a for a in self.assignments if a.key == key), None)

    def decision_for(self, key: str) -> VersionDecision | None:
        return next((d for d in self.decisions if d.key == key), None)


@dataclass
class ResolutionContext:
    """Mutable state shared by the pipeline steps of one run."""

    unit: BuildUnit
    poms_dir: Path
    jar_dirs: list[Path]
    scan_depth: int = 10
    bucket_names: BucketNames = field(default_factory=BucketNames)
    parser: PomParser = field(default_factory=PomParser)

    pom_files: list[Path] = field(default_factory=list)
    index: ArtifactIndex | None = None
    declared: DeclaredDependencies = field(default_factory=DeclaredDependencies)
    all_dependencies: list[str] = field(default_factory=list)
    bom_result: BomResult = field(default_factory=BomResult)
    test_context_keys: set[str] = field(default_factory=set)
    system_artifacts: dict[str, Coordinate] = field(default_factory=dict)
    not_found: set[str] = field(default_factory=set)
    skipped: set[str] = field(default_factory=set)
    scopes: dict[str, Scope] = field(default_factory=dict)
    graph: nx.DiGraph = field(default_factory=nx.DiGraph)
    decisions: list[VersionDecision] = field(default_factory=list)
    assignments: list[BucketAssignment] = field(default_factory=list)
    substitution_log: SubstitutionLog = field(default_factory=SubstitutionLog)
    assignment_report: AssignmentReport = field(default_factory=AssignmentReport)

    @classmethod
    def from_config(cls, unit: BuildUnit, config: ResolverConfig) -> "ResolutionContext":
        return cls(
            unit=unit,
            poms_dir=config.poms_dir,
            jar_dirs=list(config.jar_dirs),
            scan_depth=config.scan_depth,
            bucket_names=config.bucket_names,
        )

    def require_index(self) -> ArtifactIndex:
        if self.index is None:
            raise RuntimeError("Artifact index has not been built yet")
        return self.index

    def scanner(self) -> SystemArtifactScanner:
        return SystemArtifactScanner(self.require_index(), self.parser, ArtifactVerifier(self.jar_dirs))


def collect_pom_files(ctx: ResolutionContext) -> None:
    ctx.pom_files = find_pom_files(ctx.poms_dir, ctx.scan_depth)
    if not ctx.pom_files:
        logger.warning("No POM files found under %s", ctx.poms_dir)


def build_index(ctx: ResolutionContext) -> None:
    index = ArtifactIndex(ctx.parser)
    index.build(ctx.pom_files)
    ctx.index = index


def collect_declared_dependencies(ctx: ResolutionContext) -> None:
    ctx.declared = collect_declared(ctx.unit)
    ctx.all_dependencies = list(ctx.declared.keys)
    logger.info("Collected %d declared dependencies for %s", len(ctx.declared.keys), ctx.unit.key)


def apply_boms(ctx: ResolutionContext) -> None:
    """Expand BOMs; managed keys of test-only BOMs are test context too."""
    result = BomExpander(ctx.require_index(), ctx.parser).process(ctx.declared.keys)
    ctx.bom_result = result
    ctx.all_dependencies = list(result.expanded_dependencies)

    test_flags = ctx.declared.test_flags
    ctx.test_context_keys.update(ctx.declared.test_keys)
    for bom_gav, entries in result.bom_managed_deps.items():
        parts = split_key(bom_gav)
        if parts is None or not test_flags.get(f"{parts[0]}:{parts[1]}", False):
            continue
        for entry in entries:
            dep = split_key(entry)
            if dep is not None:
                ctx.test_context_keys.add(f"{dep[0]}:{dep[1]}")


def resolve_system_artifacts(ctx: ResolutionContext) -> None:
    scanner = ctx.scanner()
    found = scanner.scan(ctx.all_dependencies)
    ctx.system_artifacts = {key: coord for key, coord in found.items() if not coord.is_bom()}
    ctx.not_found = set(scanner.not_found)


def resolve_transitives(ctx: ResolutionContext) -> None:
    """Walk transitives, then re-resolve the main and test sets.

    Re-resolved test artifacts are stamped with test context and written
    after the main ones, so a key in both ends up test context.
    """
    resolver = TransitiveResolver(ctx.require_index(), ctx.parser)
    result = TransitiveProcessor(resolver).process(ctx.system_artifacts, ctx.scopes, ctx.test_context_keys)
    ctx.graph = resolver.graph
    ctx.test_context_keys.update(result.test_dependencies)
    ctx.skipped = set(result.skipped_dependencies)

    scanner = ctx.scanner()
    resolved_main = scanner.scan(sorted(result.main_dependencies))
    ctx.not_found.update(scanner.not_found)
    resolved_test = scanner.scan(sorted(result.test_dependencies))
    ctx.not_found.update(scanner.not_found)

    ctx.system_artifacts.update(resolved_main)
    ctx.system_artifacts.update({k: c.with_test_context(True) for k, c in resolved_test.items()})


def reconcile_versions(ctx: ResolutionContext) -> None:
    reconciler = VersionReconciler(ctx.substitution_log)
    ctx.decisions = reconciler.reconcile(
        ctx.declared.keys,
        ctx.declared.requested_versions,
        ctx.system_artifacts,
        ctx.bom_result.managed_versions,
    )
    if len(ctx.substitution_log):
        logger.info("Dependency substitutions: %d", len(ctx.substitution_log))


def classify_artifacts(ctx: ResolutionContext) -> None:
    classifier = BucketClassifier(ctx.bucket_names, ctx.assignment_report)
    ctx.assignments = classifier.classify_all(
        ctx.system_artifacts,
        ctx.declared.explicit_buckets,
        ctx.test_context_keys,
        ctx.declared.declarations,
        ctx.scopes,
        ctx.unit.self_keys(),
    )


Step = Callable[[ResolutionContext], None]

DEFAULT_STEPS: tuple[tuple[str, Step], ...] = (
    ("collect-pom-files", collect_pom_files),
    ("build-pom-index", build_index),
    ("collect-declared-dependencies", collect_declared_dependencies),
    ("apply-boms", apply_boms),
    ("resolve-system-artifacts", resolve_system_artifacts),
    ("resolve-transitive-dependencies", resolve_transitives),
    ("reconcile-versions", reconcile_versions),
    ("classify-artifacts", classify_artifacts),
)


def build_report(ctx: ResolutionContext) -> ResolutionReport:
    result = ctx.bom_result
    return ResolutionReport(
        unit=ctx.unit.key,
        declared=list(ctx.declared.keys),
        managed_versions=dict(result.managed_versions),
        bom_managed_deps={k: list(v) for k, v in result.bom_managed_deps.items()},
        removed_boms=sorted(result.processed_boms),
        artifacts=[ctx.system_artifacts[k] for k in sorted(ctx.system_artifacts)],
        test_context=sorted(ctx.test_context_keys),
        not_found=sorted(ctx.not_found),
        skipped=sorted(ctx.skipped),
        decisions=list(ctx.decisions),
        assignments=list(ctx.assignments),
        buckets=ctx.assignment_report.snapshot(),
        overrides=list(ctx.substitution_log.overrides().values()),
        applies=list(ctx.substitution_log.applies().values()),
    )


class ResolutionPipeline:
    """Run the resolution steps in order and build a report."""

    def __init__(self, steps: Sequence[tuple[str, Step]] = DEFAULT_STEPS) -> None:
        self.steps = list(steps)

    def run(self, ctx: ResolutionContext) -> ResolutionReport:
        for name, step in self.steps:
            logger.debug("Running step %s", name)
            step(ctx)
        report = build_report(ctx)
        logger.info(
            "Resolved %d artifacts (%d not found, %d skipped)",
            len(report.artifacts),
            len(report.not_found),
            len(report.skipped),
        )
        return report


def resolve(unit: BuildUnit, config: ResolverConfig) -> tuple[ResolutionReport, ResolutionContext]:
    """Resolve a build unit with the default pipeline."""
    config.validate()
    ctx = ResolutionContext.from_config(unit, config)
    return ResolutionPipeline().run(ctx), ctx
