from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResolutionRun(SQLModel, table=True):
    """One persisted resolution of a build unit."""

    id: Optional[int] = Field(default=None, primary_key=True)
    unit: str = Field(index=True)
    created_at: datetime = Field(default_factory=_utcnow)
    artifact_count: int = 0
    not_found_count: int = 0
    skipped_count: int = 0


class ResolvedArtifact(SQLModel, table=True):
    """An artifact resolved in a run, keyed by `groupId:artifactId` within it."""

    __table_args__ = (UniqueConstraint("run_id", "key", name="uq_run_artifact"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    run_id: int = Field(foreign_key="resolutionrun.id", index=True)
    key: str = Field(index=True)
    group_id: str
    artifact_id: str
    version: Optional[str] = Field(default=None)
    packaging: str = "jar"
    test_context: bool = False


class BucketAssignmentRow(SQLModel, table=True):
    """An artifact notation placed into a bucket."""

    __tablename__ = "bucketassignment"

    id: Optional[int] = Field(default=None, primary_key=True)
    run_id: int = Field(foreign_key="resolutionrun.id", index=True)
    bucket: str
    notation: str
    reason: str


class VersionDecisionRow(SQLModel, table=True):
    """Version decision taken for a declared dependency."""

    __tablename__ = "versiondecision"

    id: Optional[int] = Field(default=None, primary_key=True)
    run_id: int = Field(foreign_key="resolutionrun.id", index=True)
    key: str
    kind: str
    original_version: str
    target_version: Optional[str] = Field(default=None)
