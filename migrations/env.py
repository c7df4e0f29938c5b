"""Alembic environment configuration.

Uses the resolver configuration (JDEP_DB_PATH) and SQLModel metadata.
"""
from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlmodel import SQLModel

# Import models to ensure they're registered with SQLModel.metadata
from j_dep_resolver.db_models import (  # noqa: F401
    BucketAssignmentRow,
    ResolutionRun,
    ResolvedArtifact,
    VersionDecisionRow,
)
from j_dep_resolver.config import ResolverConfig
from j_dep_resolver.db import create_sqlite_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def get_url() -> str:
    return f"sqlite:///{ResolverConfig.from_env().db_path}"


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL without connecting)."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against the configured SQLite file."""
    connectable = create_sqlite_engine(ResolverConfig.from_env().db_path)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
