"""Scope merging: keep the strongest scope seen for every dependency key."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping

from j_dep_resolver.models import Scope


# Lower number wins.
SCOPE_PRIORITY: dict[Scope, int] = {
    Scope.COMPILE: 0,
    Scope.RUNTIME: 1,
    Scope.PROVIDED: 2,
    Scope.TEST: 3,
}


def _priority(scope: Scope | None) -> int | None:
    if scope is None:
        return None
    return SCOPE_PRIORITY.get(scope)


def update_scope(scopes: MutableMapping[str, Scope], key: str, new_scope: Scope | str | None) -> None:
    """Record `new_scope` for `key` if it is stronger than the stored one.

    Once a dependency is needed at compile time anywhere in the graph, a later
    test-scope sighting cannot demote it. None and unknown scopes are ignored.

    Args:
        scopes: Scope map threaded through the resolution passes (mutated).
        key: Dependency key (`groupId:artifactId`).
        new_scope: Scope seen for this sighting; strings are parsed.
    """
    if isinstance(new_scope, str) and not isinstance(new_scope, Scope):
        new_scope = Scope.parse(new_scope)

    new_priority = _priority(new_scope)
    if new_priority is None:
        return

    current_priority = _priority(scopes.get(key))
    if current_priority is None or new_priority < current_priority:
        scopes[key] = new_scope


def get_scope(scopes: Mapping[str, Scope], key: str) -> Scope:
    """Return the effective scope for `key`, COMPILE when nothing was recorded."""
    return scopes.get(key, Scope.COMPILE)
