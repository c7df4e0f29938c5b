"""Breadth-first resolution of transitive dependencies."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, MutableMapping

import networkx as nx

from j_dep_resolver.index import ArtifactLookup
from j_dep_resolver.models import Coordinate, Scope, TransitiveResult
from j_dep_resolver.parser import PomParser
from j_dep_resolver.scopes import update_scope


logger = logging.getLogger(__name__)


class TransitiveResolver:
    """Walk the dependency graph of a set of root artifacts.

    The artifact map passed to `resolve` is extended in place with every
    reachable artifact that the lookup can find. Each traversed edge is added
    to `graph` (A -> B means A depends on B).

    Test context flows from parent to child: whenever a parent declares a
    child, the child is rewritten with the parent's `test_context` flag. If
    several parents reach the same child, the last one visited wins.
    """

    def __init__(self, lookup: ArtifactLookup, parser: PomParser) -> None:
        self.lookup = lookup
        self.parser = parser
        self.graph = nx.DiGraph()

    def resolve(self, artifacts: MutableMapping[str, Coordinate], scopes: MutableMapping[str, Scope]) -> set[str]:
        """Resolve transitives of `artifacts`, updating `scopes` on the way.

        Returns:
            Keys of dependencies that could not be found.
        """
        skipped: set[str] = set()
        enqueued: set[str] = set()
        # Keys, not coordinates: a queued artifact may be re-stamped before it is visited.
        queue: deque[str] = deque(artifacts)

        while queue:
            current = artifacts.get(queue.popleft())
            if current is None or current.pom_path is None:
                continue

            self.graph.add_node(current.key)
            for dep in self.parser.parse_dependencies(current.pom_path):
                key = dep.key
                update_scope(scopes, key, dep.scope)
                if dep.scope is Scope.TEST:
                    continue

                resolved = artifacts.get(key)
                if resolved is None:
                    resolved = self.lookup.find(dep.group_id, dep.artifact_id)
                    if resolved is None:
                        logger.warning("Skipping not found dependency: %s", key)
                        skipped.add(key)
                        continue

                artifacts[key] = resolved.with_test_context(current.test_context)
                self.graph.add_edge(current.key, key, scope=(dep.scope or Scope.COMPILE).value)

                if key not in enqueued:
                    enqueued.add(key)
                    queue.append(key)

        return skipped


class TransitiveProcessor:
    """Run the resolver and partition the result into main and test sets."""

    def __init__(self, resolver: TransitiveResolver) -> None:
        self.resolver = resolver

    def process(
        self,
        artifacts: MutableMapping[str, Coordinate],
        scopes: MutableMapping[str, Scope],
        test_context_keys: Iterable[str] = (),
    ) -> TransitiveResult:
        test_keys = set(test_context_keys)
        for key, coord in list(artifacts.items()):
            if key in test_keys:
                artifacts[key] = coord.with_test_context(True)

        skipped = self.resolver.resolve(artifacts, scopes)

        main = {k for k, c in artifacts.items() if not c.test_context}
        test = {k for k, c in artifacts.items() if c.test_context}
        logger.info(
            "Transitive resolution: %d main, %d test, %d skipped",
            len(main),
            len(test),
            len(skipped),
        )
        return TransitiveResult(
            main_dependencies=frozenset(main),
            test_dependencies=frozenset(test),
            skipped_dependencies=frozenset(skipped),
        )
