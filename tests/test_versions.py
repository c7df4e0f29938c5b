from __future__ import annotations

import pytest

from j_dep_resolver.versions import compare_versions, looks_like_version, max_version, version_sort_key


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ("1.10", "1.9", 1),
        ("2.0", "2.0.0", 0),
        ("1.0", "1.0-SNAPSHOT", 1),
        ("1.0-alpha", "1.0-beta", -1),
        ("3.0.0-M1", "3.0.0", -1),
        (None, "0.1", -1),
        (None, None, 0),
    ],
)
def test_compare_versions(a: str | None, b: str | None, expected: int) -> None:
    assert compare_versions(a, b) == expected
    assert compare_versions(b, a) == -expected


def test_sort_key_orders_numerically() -> None:
    versions = ["1.10.0", "1.2", "1.9.1", "1.2-rc1"]
    assert sorted(versions, key=version_sort_key) == ["1.2-rc1", "1.2", "1.9.1", "1.10.0"]


def test_max_version_ignores_blanks_and_keeps_first_on_tie() -> None:
    assert max_version(["1.0", "", None, "1.2"]) == "1.2"
    assert max_version(["2.0", "2.0.0"]) == "2.0"
    assert max_version(["", None]) is None


def test_looks_like_version() -> None:
    assert looks_like_version("1.2.3")
    assert looks_like_version("2.0-beta")
    assert not looks_like_version("core")
    assert not looks_like_version("v1")
    assert not looks_like_version("")


def test_non_ascii_digits_compare_as_qualifiers() -> None:
    assert compare_versions("1.²", "1.0") < 0
    assert compare_versions("1.0", "1.²") > 0
    assert max_version(["1.²", "1.0"]) == "1.0"
