"""Database engine creation, initialization and run persistence."""
from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine, select

from j_dep_resolver.db_models import BucketAssignmentRow, ResolutionRun, ResolvedArtifact, VersionDecisionRow
from j_dep_resolver.pipeline import ResolutionReport


def create_sqlite_engine(db_path: Path) -> Engine:
    """Create a SQLite engine.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        SQLAlchemy Engine connected to the SQLite database.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(f"sqlite:///{db_path}", echo=False)


def init_db(engine: Engine) -> None:
    """Initialize database schema using SQLModel metadata.

    Note: This is primarily for development/testing.
    Production should use Alembic migrations.
    """
    SQLModel.metadata.create_all(engine)


def save_report(engine: Engine, report: ResolutionReport) -> int:
    """Persist a resolution report and return the new run id."""
    with Session(engine) as session:
        run = ResolutionRun(
            unit=report.unit,
            artifact_count=len(report.artifacts),
            not_found_count=len(report.not_found),
            skipped_count=len(report.skipped),
        )
        session.add(run)
        session.flush()
        run_id = run.id

        for coord in report.artifacts:
            session.add(
                ResolvedArtifact(
                    run_id=run_id,
                    key=coord.key,
                    group_id=coord.group_id,
                    artifact_id=coord.artifact_id,
                    version=coord.version,
                    packaging=coord.packaging,
                    test_context=coord.test_context,
                )
            )
        for a in report.assignments:
            for bucket in a.buckets:
                session.add(BucketAssignmentRow(run_id=run_id, bucket=bucket, notation=a.notation, reason=a.reason))
        for d in report.decisions:
            session.add(
                VersionDecisionRow(
                    run_id=run_id,
                    key=d.key,
                    kind=d.kind.value,
                    original_version=d.original_version,
                    target_version=d.target_version,
                )
            )
        session.commit()
        return run_id


def list_runs(engine: Engine, limit: int = 20) -> list[ResolutionRun]:
    """Return the most recent runs, newest first."""
    with Session(engine) as session:
        stmt = select(ResolutionRun).order_by(ResolutionRun.id.desc()).limit(limit)
        return list(session.exec(stmt).all())


def run_assignments(engine: Engine, run_id: int) -> list[BucketAssignmentRow]:
    with Session(engine) as session:
        stmt = select(BucketAssignmentRow).where(BucketAssignmentRow.run_id == run_id)
        return list(session.exec(stmt).all())
