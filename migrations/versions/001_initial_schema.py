"""Initial schema - resolution runs, artifacts, bucket assignments, decisions

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "resolutionrun",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("unit", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("artifact_count", sa.Integer(), nullable=False),
        sa.Column("not_found_count", sa.Integer(), nullable=False),
        sa.Column("skipped_count", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_resolutionrun_unit"), "resolutionrun", ["unit"], unique=False)

    op.create_table(
        "resolvedartifact",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("group_id", sa.String(), nullable=False),
        sa.Column("artifact_id", sa.String(), nullable=False),
        sa.Column("version", sa.String(), nullable=True),
        sa.Column("packaging", sa.String(), nullable=False),
        sa.Column("test_context", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["run_id"], ["resolutionrun.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("run_id", "key", name="uq_run_artifact"),
    )
    op.create_index(op.f("ix_resolvedartifact_run_id"), "resolvedartifact", ["run_id"], unique=False)
    op.create_index(op.f("ix_resolvedartifact_key"), "resolvedartifact", ["key"], unique=False)

    op.create_table(
        "bucketassignment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("bucket", sa.String(), nullable=False),
        sa.Column("notation", sa.String(), nullable=False),
        sa.Column("reason", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["run_id"], ["resolutionrun.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bucketassignment_run_id"), "bucketassignment", ["run_id"], unique=False)

    op.create_table(
        "versiondecision",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("kind", sa.String(), nullable=False),
        sa.Column("original_version", sa.String(), nullable=False),
        sa.Column("target_version", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["run_id"], ["resolutionrun.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_versiondecision_run_id"), "versiondecision", ["run_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_versiondecision_run_id"), table_name="versiondecision")
    op.drop_table("versiondecision")
    op.drop_index(op.f("ix_bucketassignment_run_id"), table_name="bucketassignment")
    op.drop_table("bucketassignment")
    op.drop_index(op.f("ix_resolvedartifact_key"), table_name="resolvedartifact")
    op.drop_index(op.f("ix_resolvedartifact_run_id"), table_name="resolvedartifact")
    op.drop_table("resolvedartifact")
    op.drop_index(op.f("ix_resolutionrun_unit"), table_name="resolutionrun")
    op.drop_table("resolutionrun")
