"""Resolver configuration module.

Configuration is read from environment variables; CLI options override it.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from j_dep_resolver.exceptions import ConfigError
from j_dep_resolver.models import BucketNames


DEFAULT_POMS_DIR = "/usr/share/maven-poms"
DEFAULT_JARS_DIR = "/usr/share/java"
DEFAULT_SCAN_DEPTH = 10
DEFAULT_DB_PATH = "resolutions.db"

_BUCKET_ENV = {
    "api": "JDEP_BUCKET_API",
    "implementation": "JDEP_BUCKET_IMPLEMENTATION",
    "runtime_only": "JDEP_BUCKET_RUNTIME_ONLY",
    "compile_only": "JDEP_BUCKET_COMPILE_ONLY",
    "test": "JDEP_BUCKET_TEST",
}


@dataclass
class ResolverConfig:
    """Resolver configuration container.

    Attributes:
        poms_dir: Root of the installed POM repository.
        jar_dirs: Directories holding installed jars.
        scan_depth: Maximum directory depth when collecting POM files.
        db_path: SQLite database for persisted resolution runs.
        bucket_names: Names of the target buckets.
    """

    poms_dir: Path = Path(DEFAULT_POMS_DIR)
    jar_dirs: list[Path] = field(default_factory=lambda: [Path(DEFAULT_JARS_DIR)])
    scan_depth: int = DEFAULT_SCAN_DEPTH
    db_path: Path = Path(DEFAULT_DB_PATH)
    bucket_names: BucketNames = field(default_factory=BucketNames)

    @classmethod
    def from_env(cls) -> "ResolverConfig":
        """Create configuration from environment variables.

        Environment variables:
            JDEP_POMS_DIR: POM repository root (default: "/usr/share/maven-poms")
            JDEP_JARS_DIRS: Comma-separated jar directories (default: "/usr/share/java")
            JDEP_SCAN_DEPTH: Max directory depth for POM scans (default: 10)
            JDEP_DB_PATH: SQLite database path (default: "resolutions.db")
            JDEP_BUCKET_<TYPE>: Bucket name override, e.g. JDEP_BUCKET_TEST

        Raises:
            ConfigError: If JDEP_SCAN_DEPTH is not an integer.
        """
        raw_depth = os.getenv("JDEP_SCAN_DEPTH", str(DEFAULT_SCAN_DEPTH))
        try:
            scan_depth = int(raw_depth)
        except ValueError:
            raise ConfigError(f"JDEP_SCAN_DEPTH must be an integer, got {raw_depth!r}") from None

        jars = os.getenv("JDEP_JARS_DIRS", DEFAULT_JARS_DIR)
        overrides = {attr: os.environ[env] for attr, env in _BUCKET_ENV.items() if os.getenv(env)}

        return cls(
            poms_dir=Path(os.getenv("JDEP_POMS_DIR", DEFAULT_POMS_DIR)),
            jar_dirs=[Path(p.strip()) for p in jars.split(",") if p.strip()],
            scan_depth=scan_depth,
            db_path=Path(os.getenv("JDEP_DB_PATH", DEFAULT_DB_PATH)).resolve(),
            bucket_names=BucketNames(**overrides),
        )

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ConfigError: If required configuration is missing or invalid.
        """
        if not str(self.poms_dir):
            raise ConfigError("JDEP_POMS_DIR is required")
        if not self.jar_dirs:
            raise ConfigError("At least one jar directory is required (JDEP_JARS_DIRS)")
        if self.scan_depth < 1:
            raise ConfigError(f"JDEP_SCAN_DEPTH must be positive, got {self.scan_depth}")
