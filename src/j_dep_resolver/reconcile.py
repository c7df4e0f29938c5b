"""Pick the final version of each dependency and keep an audit log."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping

from j_dep_resolver.models import UNSPECIFIED_VERSION, Coordinate, DecisionKind, VersionDecision
from j_dep_resolver.versions import max_version


logger = logging.getLogger(__name__)


class SubstitutionLog:
    """Thread-safe record of version overrides and BOM applications.

    Override entries are keyed by `key|original|target`; apply entries by
    dependency key, so re-recording the same decision is a no-op.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._overrides: dict[str, str] = {}
        self._applies: dict[str, str] = {}

    def record(self, decision: VersionDecision) -> None:
        with self._lock:
            if decision.kind is DecisionKind.OVERRIDE:
                log_key = f"{decision.key}|{decision.original_version}|{decision.target_version}"
                self._overrides[log_key] = decision.message
            elif decision.kind is DecisionKind.APPLY_MANAGED:
                self._applies[decision.key] = decision.message

    def overrides(self) -> dict[str, str]:
        with self._lock:
            return dict(self._overrides)

    def applies(self) -> dict[str, str]:
        with self._lock:
            return dict(self._applies)

    def __len__(self) -> int:
        with self._lock:
            return len(self._overrides) + len(self._applies)


class VersionReconciler:
    """Decide, per dependency key, which version the build should use.

    An installed system artifact always beats a BOM-managed version.
    """

    def __init__(self, log: SubstitutionLog | None = None) -> None:
        self.log = log if log is not None else SubstitutionLog()

    @staticmethod
    def original_version(requested_versions: Iterable[str | None]) -> str:
        return max_version(requested_versions) or UNSPECIFIED_VERSION

    def decide(
        self,
        key: str,
        requested_versions: Iterable[str | None],
        system: Coordinate | None,
        managed_version: str | None,
    ) -> VersionDecision:
        original = self.original_version(requested_versions)

        if system is not None:
            target = system.version
            if target is not None and target != original:
                return VersionDecision(
                    key=key,
                    kind=DecisionKind.OVERRIDE,
                    original_version=original,
                    target_version=target,
                    message=f"Override version: {key}:{original} -> {target}",
                )
        elif managed_version is not None and managed_version != original:
            return VersionDecision(
                key=key,
                kind=DecisionKind.APPLY_MANAGED,
                original_version=original,
                target_version=managed_version,
                message=f"Apply BOM version: {key}:{managed_version}",
            )

        return VersionDecision(key=key, kind=DecisionKind.NO_CHANGE, original_version=original)

    def reconcile(
        self,
        keys: Iterable[str],
        requested_versions: Mapping[str, Iterable[str | None]],
        system_artifacts: Mapping[str, Coordinate],
        managed_versions: Mapping[str, str],
    ) -> list[VersionDecision]:
        """Decide every key and record the non-trivial decisions in `log`."""
        decisions: list[VersionDecision] = []
        for key in keys:
            decision = self.decide(
                key,
                requested_versions.get(key, ()),
                system_artifacts.get(key),
                managed_versions.get(key),
            )
            if decision.kind is not DecisionKind.NO_CHANGE:
                self.log.record(decision)
                logger.debug(decision.message)
            decisions.append(decision)
        return decisions
