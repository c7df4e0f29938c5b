"""Pytest configuration and fixtures for j-dep-resolver tests."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

import pytest

from j_dep_resolver.config import ResolverConfig


def _dependency_xml(dep: Mapping[str, str]) -> str:
    fields = [
        ("groupId", dep.get("group")),
        ("artifactId", dep.get("artifact")),
        ("version", dep.get("version")),
        ("type", dep.get("type")),
        ("scope", dep.get("scope")),
    ]
    body = "".join(f"<{tag}>{value}</{tag}>" for tag, value in fields if value is not None)
    return f"    <dependency>{body}</dependency>\n"


def pom_xml(
    group: str | None,
    artifact: str,
    version: str | None = None,
    *,
    packaging: str | None = None,
    dependencies: Iterable[Mapping[str, str]] = (),
    managed: Iterable[Mapping[str, str]] = (),
    parent: Mapping[str, str] | None = None,
    properties: Mapping[str, str] | None = None,
) -> str:
    """Render a minimal Maven POM."""
    parts = ['<?xml version="1.0" encoding="UTF-8"?>\n', '<project xmlns="http://maven.apache.org/POM/4.0.0">\n']
    parts.append("  <modelVersion>4.0.0</modelVersion>\n")
    if parent:
        parent_body = "".join(f"<{k}>{v}</{k}>" for k, v in parent.items())
        parts.append(f"  <parent>{parent_body}</parent>\n")
    if group is not None:
        parts.append(f"  <groupId>{group}</groupId>\n")
    parts.append(f"  <artifactId>{artifact}</artifactId>\n")
    if version is not None:
        parts.append(f"  <version>{version}</version>\n")
    if packaging is not None:
        parts.append(f"  <packaging>{packaging}</packaging>\n")
    if properties:
        props = "".join(f"<{k}>{v}</{k}>" for k, v in properties.items())
        parts.append(f"  <properties>{props}</properties>\n")
    managed = list(managed)
    if managed:
        parts.append("  <dependencyManagement><dependencies>\n")
        parts.extend(_dependency_xml(d) for d in managed)
        parts.append("  </dependencies></dependencyManagement>\n")
    dependencies = list(dependencies)
    if dependencies:
        parts.append("  <dependencies>\n")
        parts.extend(_dependency_xml(d) for d in dependencies)
        parts.append("  </dependencies>\n")
    parts.append("</project>\n")
    return "".join(parts)


def dep(group: str, artifact: str, version: str | None = None, scope: str | None = None, type: str | None = None) -> dict:
    return {"group": group, "artifact": artifact, "version": version, "scope": scope, "type": type}


class SystemRepo:
    """A throwaway system repository: POMs under `poms/`, jars under `jars/`."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.poms = root / "poms"
        self.jars = root / "jars"
        self.poms.mkdir(parents=True, exist_ok=True)
        self.jars.mkdir(parents=True, exist_ok=True)

    def pom(
        self,
        group: str | None,
        artifact: str,
        version: str | None = None,
        *,
        filename: str | None = None,
        subdir: str | None = None,
        with_jar: bool = True,
        **kwargs,
    ) -> Path:
        directory = self.poms / subdir if subdir else self.poms
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / (filename or f"{artifact}.pom")
        path.write_text(pom_xml(group, artifact, version, **kwargs), encoding="utf-8")
        if with_jar and kwargs.get("packaging") != "pom":
            self.jar(f"{artifact}.jar")
        return path

    def bom(self, group: str, artifact: str, version: str, managed: Iterable[Mapping[str, str]], **kwargs) -> Path:
        return self.pom(group, artifact, version, packaging="pom", managed=managed, **kwargs)

    def jar(self, name: str) -> Path:
        path = self.jars / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"PK\x03\x04")
        return path

    def config(self) -> ResolverConfig:
        return ResolverConfig(poms_dir=self.poms, jar_dirs=[self.jars], db_path=self.root / "runs.db")


@pytest.fixture
def repo(tmp_path: Path) -> SystemRepo:
    return SystemRepo(tmp_path / "system")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep JDEP_* settings from the developer's shell out of the tests."""
    import os

    for name in list(os.environ):
        if name.startswith("JDEP_"):
            monkeypatch.delenv(name, raising=False)
