"""Queries over the dependency graph built during transitive resolution."""

from __future__ import annotations

from collections.abc import Iterable

import networkx as nx


def reverse_dependencies(g: nx.DiGraph, target: str) -> list[str]:
    """Return predecessors of target (who depends on it)."""
    if target not in g:
        return []
    return sorted(str(n) for n in g.predecessors(target))


def dependency_chain(g: nx.DiGraph, roots: Iterable[str], target: str) -> list[str]:
    """Return the shortest path from any of `roots` to target, or [] if none.

    Roots are tried in sorted order so the answer is stable between runs.
    """
    if target not in g:
        return []

    best: list[str] = []
    for root in sorted(set(roots)):
        if root not in g:
            continue
        try:
            path = nx.shortest_path(g, root, target)
        except nx.NetworkXNoPath:
            continue
        if not best or len(path) < len(best):
            best = [str(n) for n in path]
    return best
