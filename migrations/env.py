"""Alembic environment for the artifact side index.

Reads the database location from the same environment variables as the
CLI (`M2C_DB_TYPE`, `M2C_DB_PATH`) and uses SQLModel metadata as the target.
"""
from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlmodel import SQLModel

# Add the src directory to sys.path for imports
src_path = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(src_path))

# Registers ArtifactRecord with SQLModel.metadata
from m2_curator.db_models import ArtifactRecord  # noqa: F401, E402
from m2_curator.config import DatabaseConfig  # noqa: E402
from m2_curator.db import create_engine_from_config  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def _database_config() -> DatabaseConfig:
    db_config = DatabaseConfig.from_env()
    if not db_config.enabled:
        raise RuntimeError("Set M2C_DB_TYPE=sqlite (and M2C_DB_PATH) before running migrations")
    return db_config


def get_url() -> str:
    return f"sqlite:///{_database_config().sqlite_path}"


def run_migrations_offline() -> None:
    """Emit SQL without connecting to the database."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine_from_config(_database_config())

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
