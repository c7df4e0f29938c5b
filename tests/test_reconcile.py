from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from j_dep_resolver.models import Coordinate, DecisionKind, VersionDecision
from j_dep_resolver.reconcile import SubstitutionLog, VersionReconciler


def _system(version: str) -> Coordinate:
    return Coordinate(group_id="g", artifact_id="a", version=version)


def test_system_version_overrides_requested() -> None:
    decision = VersionReconciler().decide("g:a", ["1.0", "1.2"], _system("2.0"), "3.0")

    assert decision.kind is DecisionKind.OVERRIDE
    assert decision.original_version == "1.2"
    assert decision.target_version == "2.0"
    assert decision.message == "Override version: g:a:1.2 -> 2.0"


def test_managed_version_applies_without_system_artifact() -> None:
    decision = VersionReconciler().decide("g:b", ["1.5"], None, "2.0")

    assert decision.kind is DecisionKind.APPLY_MANAGED
    assert decision.target_version == "2.0"
    assert decision.message == "Apply BOM version: g:b:2.0"


def test_no_change_when_versions_agree() -> None:
    reconciler = VersionReconciler()

    assert reconciler.decide("g:a", ["2.0"], _system("2.0"), None).kind is DecisionKind.NO_CHANGE
    assert reconciler.decide("g:a", ["2.0"], None, "2.0").kind is DecisionKind.NO_CHANGE
    assert reconciler.decide("g:a", ["2.0"], None, None).kind is DecisionKind.NO_CHANGE


def test_system_artifact_equal_to_request_blocks_bom() -> None:
    decision = VersionReconciler().decide("g:a", ["1.0"], _system("1.0"), "5.0")

    assert decision.kind is DecisionKind.NO_CHANGE


def test_unspecified_original_version() -> None:
    decision = VersionReconciler().decide("g:a", [None, ""], None, "1.0")

    assert decision.original_version == "(unspecified)"
    assert decision.kind is DecisionKind.APPLY_MANAGED


def test_reconcile_records_only_changes() -> None:
    reconciler = VersionReconciler()
    decisions = reconciler.reconcile(
        ["g:a", "g:b", "g:c"],
        {"g:a": ["1.0"], "g:b": ["1.0"], "g:c": ["1.0"]},
        {"g:a": _system("2.0")},
        {"g:b": "1.5", "g:c": "1.0"},
    )

    assert [d.kind for d in decisions] == [DecisionKind.OVERRIDE, DecisionKind.APPLY_MANAGED, DecisionKind.NO_CHANGE]
    assert reconciler.log.overrides() == {"g:a|1.0|2.0": "Override version: g:a:1.0 -> 2.0"}
    assert reconciler.log.applies() == {"g:b": "Apply BOM version: g:b:1.5"}


def test_substitution_log_concurrent_inserts() -> None:
    log = SubstitutionLog()

    def record(i: int) -> None:
        log.record(
            VersionDecision(
                key=f"g:a{i % 50}",
                kind=DecisionKind.APPLY_MANAGED,
                original_version="1",
                target_version="2",
                message=f"Apply BOM version: g:a{i % 50}:2",
            )
        )
        log.record(
            VersionDecision(
                key="g:o",
                kind=DecisionKind.OVERRIDE,
                original_version=str(i),
                target_version="9",
                message="override",
            )
        )

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(record, range(400)))

    assert len(log.applies()) == 50
    assert len(log.overrides()) == 400
    assert len(log) == 450


def test_reconciler_fills_the_log_it_was_given() -> None:
    log = SubstitutionLog()
    reconciler = VersionReconciler(log)

    reconciler.reconcile(["g:a"], {"g:a": ["1.0"]}, {"g:a": _system("2.0")}, {})

    assert reconciler.log is log
    assert log.overrides() == {"g:a|1.0|2.0": "Override version: g:a:1.0 -> 2.0"}
