"""Assign resolved artifacts to build buckets."""

from __future__ import annotations

import logging
import threading
from collections.abc import Collection, Mapping, Sequence

from j_dep_resolver.declarations import DeclarationInfo
from j_dep_resolver.models import BucketAssignment, BucketNames, BucketType, Coordinate, Scope
from j_dep_resolver.scopes import get_scope


logger = logging.getLogger(__name__)


class AssignmentReport:
    """Thread-safe bucket name -> ordered, de-duplicated artifact notations."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._buckets: dict[str, dict[str, None]] = {}

    def add(self, bucket: str, notation: str) -> None:
        with self._lock:
            self._buckets.setdefault(bucket, {})[notation] = None

    def snapshot(self) -> dict[str, list[str]]:
        with self._lock:
            return {bucket: list(notations) for bucket, notations in self._buckets.items()}

    def __len__(self) -> int:
        with self._lock:
            return sum(len(n) for n in self._buckets.values())


def _scope_bucket(scope: Scope) -> BucketType:
    if scope is Scope.PROVIDED:
        return BucketType.COMPILE_ONLY
    if scope is Scope.RUNTIME:
        return BucketType.RUNTIME_ONLY
    if scope is Scope.TEST:
        return BucketType.TEST
    return BucketType.IMPLEMENTATION


class BucketClassifier:
    """Decide which bucket(s) each resolved artifact belongs to.

    Rules, first match wins:

    1. BOMs and the build unit itself (or a sibling module) are skipped.
    2. Buckets named by the original declaration are used as-is.
    3. Test-context artifacts go to the test bucket.
    4. The first non-test declared type decides.
    5. Otherwise the merged Maven scope decides.
    """

    def __init__(self, names: BucketNames | None = None, report: AssignmentReport | None = None) -> None:
        self.names = names or BucketNames()
        self.report = report if report is not None else AssignmentReport()

    def classify(
        self,
        key: str,
        coordinate: Coordinate,
        explicit_buckets: Mapping[str, Sequence[str]],
        test_context_keys: Collection[str],
        declarations: Mapping[str, Sequence[DeclarationInfo]],
        scopes: Mapping[str, Scope],
        self_keys: Collection[str] = (),
    ) -> BucketAssignment | None:
        if coordinate.is_bom():
            logger.debug("Not assigning BOM %s", coordinate.notation)
            return None
        if key in self_keys or coordinate.key in self_keys:
            logger.debug("Detected project dependency, skipping: %s", coordinate.notation)
            return None

        explicit = list(dict.fromkeys(explicit_buckets.get(key, ())))
        if explicit:
            return self._assign(key, coordinate, tuple(explicit), "declared")

        if key in test_context_keys or coordinate.test_context:
            return self._assign(key, coordinate, (self.names.test,), "test-context")

        for info in declarations.get(key, ()):
            if info.test_only or info.type is BucketType.UNKNOWN:
                continue
            return self._assign(key, coordinate, (self.names.name_for(info.type),), f"declared-type:{info.name}")

        scope = get_scope(scopes, key)
        bucket = self.names.name_for(_scope_bucket(scope))
        return self._assign(key, coordinate, (bucket,), f"scope:{scope.value}")

    def _assign(self, key: str, coordinate: Coordinate, buckets: tuple[str, ...], reason: str) -> BucketAssignment:
        assignment = BucketAssignment(key=key, coordinate=coordinate, buckets=buckets, reason=reason)
        for bucket in buckets:
            self.report.add(bucket, assignment.notation)
        logger.debug("%s -> %s (%s)", assignment.notation, ", ".join(buckets), reason)
        return assignment

    def classify_all(
        self,
        artifacts: Mapping[str, Coordinate],
        explicit_buckets: Mapping[str, Sequence[str]],
        test_context_keys: Collection[str],
        declarations: Mapping[str, Sequence[DeclarationInfo]],
        scopes: Mapping[str, Scope],
        self_keys: Collection[str] = (),
    ) -> list[BucketAssignment]:
        out: list[BucketAssignment] = []
        for key, coord in artifacts.items():
            assignment = self.classify(
                key, coord, explicit_buckets, test_context_keys, declarations, scopes, self_keys
            )
            if assignment is not None:
                out.append(assignment)
        return out
