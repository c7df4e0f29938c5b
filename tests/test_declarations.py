from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import dep, pom_xml

from j_dep_resolver.declarations import (
    BuildUnit,
    DeclaredDependency,
    ModuleRef,
    classify_bucket_name,
    collect_declared,
    load_build_unit,
)
from j_dep_resolver.exceptions import DeclarationError
from j_dep_resolver.models import BucketType


@pytest.mark.parametrize(
    ("name", "expected", "test_only"),
    [
        ("testImplementation", BucketType.TEST, True),
        ("testRuntimeOnly", BucketType.TEST, True),
        ("implementation", BucketType.IMPLEMENTATION, False),
        ("runtimeOnly", BucketType.RUNTIME_ONLY, False),
        ("compileOnly", BucketType.COMPILE_ONLY, False),
        ("providedCompile", BucketType.COMPILE_ONLY, False),
        ("api", BucketType.API, False),
        ("annotationProcessor", BucketType.UNKNOWN, False),
    ],
)
def test_classify_bucket_name(name: str, expected: BucketType, test_only: bool) -> None:
    info = classify_bucket_name(name)

    assert info.type is expected
    assert info.test_only is test_only
    assert info.name == name


def test_collect_declared_indexes_by_key() -> None:
    unit = BuildUnit(
        group="org.example",
        name="app",
        dependencies=[
            DeclaredDependency(group_id="g", artifact_id="a", version="1.0", bucket="implementation"),
            DeclaredDependency(group_id="g", artifact_id="a", version="1.2", bucket="testImplementation"),
            DeclaredDependency(group_id="g", artifact_id="b", version="2.0", bucket="implementation"),
            DeclaredDependency(group_id="g", artifact_id="c"),
            DeclaredDependency(group_id=" ", artifact_id="blank", bucket="api"),
        ],
    )

    declared = collect_declared(unit)

    assert declared.keys == ["g:a", "g:b", "g:c"]
    assert declared.requested_versions == {"g:a": ["1.0", "1.2"], "g:b": ["2.0"], "g:c": [None]}
    assert declared.explicit_buckets == {"g:a": ["implementation", "testImplementation"], "g:b": ["implementation"]}
    assert [d.type for d in declared.declarations["g:a"]] == [BucketType.IMPLEMENTATION, BucketType.TEST]
    assert declared.test_flags == {"g:a": True, "g:b": False}
    assert declared.test_keys == {"g:a"}


def test_build_unit_self_keys() -> None:
    unit = BuildUnit(group="org.example", name="app", modules=[ModuleRef(group="org.example", name="app-core")])

    assert unit.self_keys() == {"org.example:app", "org.example:app-core"}


def test_load_json_manifest(tmp_path: Path) -> None:
    path = tmp_path / "unit.json"
    path.write_text(
        json.dumps(
            {
                "group": "org.example",
                "name": "app",
                "dependencies": [
                    {"group_id": "g", "artifact_id": "a", "version": "1.0", "bucket": "api"},
                    {"group_id": "g", "artifact_id": "b"},
                ],
            }
        ),
        encoding="utf-8",
    )

    unit = load_build_unit(path)

    assert unit.key == "org.example:app"
    assert [d.key for d in unit.dependencies] == ["g:a", "g:b"]
    assert unit.dependencies[1].bucket is None


def test_load_pom_maps_scopes_to_buckets(tmp_path: Path) -> None:
    path = tmp_path / "pom.xml"
    path.write_text(
        pom_xml(
            "org.example",
            "app",
            "1.0",
            properties={"junit.version": "5.10.0"},
            managed=[
                dep("org.junit", "junit-bom", "${junit.version}", scope="import", type="pom"),
                dep("g", "pinned", "3.0"),
            ],
            dependencies=[
                dep("g", "core", "1.0"),
                dep("g", "servlet", "4.0", scope="provided"),
                dep("g", "driver", "2.0", scope="runtime"),
                dep("org.junit.jupiter", "junit-jupiter", scope="test"),
            ],
        ),
        encoding="utf-8",
    )

    unit = load_build_unit(path)
    buckets = {d.key: d.bucket for d in unit.dependencies}

    assert unit.key == "org.example:app"
    assert buckets == {
        "org.junit:junit-bom": "platform",
        "g:core": "implementation",
        "g:servlet": "compileOnly",
        "g:driver": "runtimeOnly",
        "org.junit.jupiter:junit-jupiter": "testImplementation",
    }
    assert unit.dependencies[0].version == "5.10.0"


def test_missing_declaration_file(tmp_path: Path) -> None:
    with pytest.raises(DeclarationError, match="not found"):
        load_build_unit(tmp_path / "nope.json")


def test_invalid_json_manifest(tmp_path: Path) -> None:
    path = tmp_path / "unit.json"
    path.write_text('{"group": "g"}', encoding="utf-8")

    with pytest.raises(DeclarationError, match="Invalid declaration"):
        load_build_unit(path)


def test_unreadable_pom_declaration(tmp_path: Path) -> None:
    path = tmp_path / "pom.xml"
    path.write_text("<project>", encoding="utf-8")

    with pytest.raises(DeclarationError):
        load_build_unit(path)


def test_load_pom_merges_parent_and_management(tmp_path: Path) -> None:
    (tmp_path / "pom.xml").write_text(
        pom_xml(
            "org.example",
            "parent",
            "1.0",
            packaging="pom",
            managed=[dep("org.junit", "junit", "4.13.2", scope="test")],
            dependencies=[dep("org.slf4j", "slf4j-api", "2.0.9")],
        ),
        encoding="utf-8",
    )
    child = tmp_path / "app" / "pom.xml"
    child.parent.mkdir()
    child.write_text(
        pom_xml(
            None,
            "app",
            parent={"groupId": "org.example", "artifactId": "parent", "version": "1.0"},
            dependencies=[dep("org.junit", "junit")],
        ),
        encoding="utf-8",
    )

    unit = load_build_unit(child)
    declared = {(d.key, d.version, d.bucket) for d in unit.dependencies}

    assert unit.key == "org.example:app"
    assert declared == {
        ("org.slf4j:slf4j-api", "2.0.9", "implementation"),
        ("org.junit:junit", "4.13.2", "testImplementation"),
    }
