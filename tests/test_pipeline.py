from __future__ import annotations

from conftest import SystemRepo, dep

from j_dep_resolver.bom import BomExpander
from j_dep_resolver.classifier import BucketClassifier
from j_dep_resolver.declarations import BuildUnit, DeclaredDependency
from j_dep_resolver.index import ArtifactIndex
from j_dep_resolver.models import DecisionKind
from j_dep_resolver.parser import PomParser
from j_dep_resolver.pipeline import ResolutionContext, ResolutionPipeline, resolve
from j_dep_resolver.reconcile import VersionReconciler
from j_dep_resolver.scanner import find_pom_files
from j_dep_resolver.transitive import TransitiveResolver


def _unit(*deps: DeclaredDependency, group: str = "org.example", name: str = "app") -> BuildUnit:
    return BuildUnit(group=group, name=name, dependencies=list(deps))


def test_bom_managed_version_is_applied(repo: SystemRepo) -> None:
    repo.bom("g", "a", "1.0", managed=[dep("g", "b", "2.0")])
    repo.pom("g", "b", "1.5")
    parser = PomParser()
    index = ArtifactIndex(parser)
    index.build(find_pom_files(repo.poms))

    result = BomExpander(index, parser).process(["g:a", "g:b"])
    decision = VersionReconciler().decide("g:b", ["1.5"], None, result.managed_versions.get("g:b"))
    assignment = BucketClassifier().classify(
        "g:b", index.find("g", "b"), explicit_buckets={}, test_context_keys=set(), declarations={}, scopes={}
    )

    assert decision.kind is DecisionKind.APPLY_MANAGED
    assert decision.target_version == "2.0"
    assert assignment.buckets == ("implementation",)


def test_transitive_self_dependency_is_not_assigned(repo: SystemRepo) -> None:
    repo.pom("g", "lib", "1.0", dependencies=[dep("g", "app", "1.0")])
    repo.pom("g", "app", "1.0")
    parser = PomParser()
    index = ArtifactIndex(parser)
    index.build(find_pom_files(repo.poms))

    artifacts = {"g:lib": index.find("g", "lib")}
    scopes: dict = {}
    TransitiveResolver(index, parser).resolve(artifacts, scopes)
    assignments = BucketClassifier().classify_all(artifacts, {}, set(), {}, scopes, _unit(group="g").self_keys())

    assert "g:app" in artifacts
    assert [a.key for a in assignments] == ["g:lib"]


def _populate(repo: SystemRepo) -> None:
    repo.bom("g", "bom", "1", managed=[dep("g", "managed", "2.0")])
    repo.pom("g", "managed", "2.0")
    repo.pom(
        "g",
        "lib",
        "1.0",
        dependencies=[dep("g", "trans", "1.0"), dep("g", "gone", "1"), dep("g", "testy", "1", scope="test")],
    )
    repo.pom("g", "trans", "1.0")
    repo.pom("g", "tests", "1.0", dependencies=[dep("g", "mock", "1.0")])
    repo.pom("g", "mock", "1.0")


def _declared_unit() -> BuildUnit:
    return _unit(
        DeclaredDependency(group_id="g", artifact_id="lib", version="0.9", bucket="implementation"),
        DeclaredDependency(group_id="g", artifact_id="tests", version="1.0", bucket="testImplementation"),
        DeclaredDependency(group_id="g", artifact_id="bom", version="1", bucket="platform"),
        DeclaredDependency(group_id="g", artifact_id="missing", version="1.0", bucket="implementation"),
    )


def test_full_pipeline(repo: SystemRepo) -> None:
    _populate(repo)

    report, ctx = resolve(_declared_unit(), repo.config())

    assert report.unit == "org.example:app"
    assert report.declared == ["g:lib", "g:tests", "g:bom", "g:missing"]
    assert report.managed_versions == {"g:managed": "2.0"}
    assert report.bom_managed_deps == {"g:bom:1": ["g:managed:2.0"]}
    assert report.removed_boms == ["g:bom"]
    assert [c.key for c in report.artifacts] == ["g:lib", "g:managed", "g:mock", "g:tests", "g:trans"]
    assert report.test_context == ["g:mock", "g:tests"]
    assert report.not_found == ["g:missing"]
    assert report.skipped == ["g:gone"]

    buckets = {a.key: (a.buckets, a.reason) for a in report.assignments}
    assert buckets == {
        "g:lib": (("implementation",), "declared"),
        "g:managed": (("implementation",), "scope:compile"),
        "g:mock": (("testImplementation",), "test-context"),
        "g:tests": (("testImplementation",), "declared"),
        "g:trans": (("implementation",), "scope:compile"),
    }
    assert report.buckets["testImplementation"] == ["g:tests:1.0", "g:mock:1.0"]

    lib = report.decision_for("g:lib")
    assert lib.kind is DecisionKind.OVERRIDE
    assert (lib.original_version, lib.target_version) == ("0.9", "1.0")
    assert report.overrides == ["Override version: g:lib:0.9 -> 1.0"]
    assert report.decision_for("g:missing").kind is DecisionKind.NO_CHANGE

    assert ctx.graph.has_edge("g:lib", "g:trans")
    assert ctx.graph.has_edge("g:tests", "g:mock")
    assert ctx.scopes["g:testy"].value == "test"


def test_pipeline_runs_custom_steps_in_order(repo: SystemRepo) -> None:
    calls: list[str] = []

    def step(name: str):
        return name, lambda ctx: calls.append(name)

    ctx = ResolutionContext.from_config(_unit(), repo.config())
    report = ResolutionPipeline([step("one"), step("two")]).run(ctx)

    assert calls == ["one", "two"]
    assert report.artifacts == []
    assert report.buckets == {}


def test_pipeline_with_empty_repository(repo: SystemRepo) -> None:
    unit = _unit(DeclaredDependency(group_id="g", artifact_id="a", version="1", bucket="api"))

    report, _ = resolve(unit, repo.config())

    assert report.not_found == ["g:a"]
    assert report.assignments == []
    assert report.decision_for("g:a").kind is DecisionKind.NO_CHANGE
