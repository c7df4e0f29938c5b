from __future__ import annotations

from pathlib import Path

from j_dep_resolver.finder import PomFinder, matches_variant, name_variants
from j_dep_resolver.scanner import find_pom_files


def test_name_variants() -> None:
    assert name_variants("org.apache.commons", "commons-lang3") == [
        "commons-lang3",
        "apache-commons-commons-lang3",
        "apache-commons-lang3",
    ]
    assert name_variants("junit", "junit") == ["junit"]
    assert name_variants("org.slf4j", "api") == ["api", "slf4j-api"]


def test_matches_variant() -> None:
    assert matches_variant(Path("guava.pom"), "guava", "guava")
    assert matches_variant(Path("guava-32.1.pom"), "guava", "guava")
    assert matches_variant(Path("jakarta-2.0-servlet.pom"), "jakarta", "servlet")
    assert not matches_variant(Path("guava-testlib.pom"), "guava", "guava")
    assert not matches_variant(Path("guava.xml"), "guava", "guava")


def test_finder_matches_parsed_coordinates(repo) -> None:
    repo.pom("org.apache.commons", "commons-lang3", "3.12", filename="apache-commons-lang3.pom", subdir="JPP")
    repo.pom("org.apache.commons", "commons-lang3", "3.14", filename="commons-lang3-3.14.pom")
    repo.pom("other.group", "commons-lang3", "9.9", filename="commons-lang3-9.9.pom")

    finder = PomFinder(repo.poms)
    coord = finder.find("org.apache.commons", "commons-lang3")

    assert coord is not None
    assert coord.version == "3.14"
    assert finder.find("org.apache.commons", "missing") is None


def test_finder_lists_group(repo) -> None:
    repo.pom("org.x", "b", "1")
    repo.pom("org.x", "a", "2")
    repo.pom("org.y", "c", "1")

    assert [c.key for c in PomFinder(repo.poms).find_all_for_group("org.x")] == ["org.x:a", "org.x:b"]


def test_find_pom_files_respects_depth(tmp_path: Path) -> None:
    deep = tmp_path / "a" / "b" / "c"
    deep.mkdir(parents=True)
    (tmp_path / "top.pom").write_text("<project/>", encoding="utf-8")
    (tmp_path / "a" / "pom.xml").write_text("<project/>", encoding="utf-8")
    (deep / "deep.pom").write_text("<project/>", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("", encoding="utf-8")

    assert [p.name for p in find_pom_files(tmp_path, max_depth=1)] == ["pom.xml", "top.pom"]
    assert len(find_pom_files(tmp_path)) == 3
    assert find_pom_files(tmp_path / "missing") == []
