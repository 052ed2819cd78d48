"""Database engine creation and the artifact side index.

The side index is optional. When configured, purges remove the rows of every
file they delete so no record points at a missing file.
"""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine, select

from m2_curator.config import DatabaseConfig
from m2_curator.db_models import ArtifactRecord
from m2_curator.models import ArtifactCoordinate
from m2_curator.versions import get_base_version


def _naive_utc(value: datetime) -> datetime:
    """SQLite keeps no zone: store and compare naive UTC datetimes."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def create_sqlite_engine(db_path: Path) -> Engine:
    """Create a SQLite engine.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        SQLAlchemy Engine connected to the SQLite database.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(f"sqlite:///{db_path}", echo=False)


def create_engine_from_config(config: DatabaseConfig) -> Engine | None:
    """Create a database engine based on configuration.

    Returns:
        SQLAlchemy Engine, or None when the side index is disabled.

    Raises:
        ValueError: If the database type is not supported.
    """
    config.validate()

    if config.db_type == "sqlite":
        return create_sqlite_engine(config.sqlite_path)
    return None


def init_db(engine: Engine) -> None:
    """Initialize database schema using SQLModel metadata.

    Note: This is primarily for development/testing.
    Production should use Alembic migrations.
    """
    SQLModel.metadata.create_all(engine)


class ArtifactIndex:
    """Query and maintenance helpers over `ArtifactRecord` rows."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def add(
        self, repository_id: str, path: str, coordinate: ArtifactCoordinate, last_modified: datetime
    ) -> None:
        """Insert or refresh the row for one artifact file."""
        with Session(self.engine) as session:
            row = session.exec(
                select(ArtifactRecord).where(
                    ArtifactRecord.repository_id == repository_id, ArtifactRecord.path == path
                )
            ).first()
            if row is None:
                row = ArtifactRecord(
                    repository_id=repository_id,
                    path=path,
                    group_id=coordinate.group_id,
                    artifact_id=coordinate.artifact_id,
                    project_version=get_base_version(coordinate.version or ""),
                    version=coordinate.version or "",
                    classifier=coordinate.classifier,
                    type=coordinate.type,
                    last_modified=_naive_utc(last_modified),
                )
            else:
                row.last_modified = _naive_utc(last_modified)
            session.add(row)
            session.commit()

    def remove_file(self, repository_id: str, path: str) -> int:
        with Session(self.engine) as session:
            result = session.execute(
                delete(ArtifactRecord).where(
                    ArtifactRecord.repository_id == repository_id, ArtifactRecord.path == path
                )
            )
            session.commit()
            return result.rowcount

    def remove_version(self, repository_id: str, group_id: str, artifact_id: str, project_version: str) -> int:
        """Drop every row of a project version (used when a whole version directory goes)."""
        with Session(self.engine) as session:
            result = session.execute(
                delete(ArtifactRecord).where(
                    ArtifactRecord.repository_id == repository_id,
                    ArtifactRecord.group_id == group_id,
                    ArtifactRecord.artifact_id == artifact_id,
                    ArtifactRecord.project_version == project_version,
                )
            )
            session.commit()
            return result.rowcount

    def records_for_version(
        self, repository_id: str, group_id: str, artifact_id: str, project_version: str
    ) -> list[ArtifactRecord]:
        with Session(self.engine) as session:
            return list(
                session.exec(
                    select(ArtifactRecord).where(
                        ArtifactRecord.repository_id == repository_id,
                        ArtifactRecord.group_id == group_id,
                        ArtifactRecord.artifact_id == artifact_id,
                        ArtifactRecord.project_version == project_version,
                    )
                ).all()
            )

    def records_older_than(self, repository_id: str, cutoff: datetime) -> list[ArtifactRecord]:
        """Rows whose file was last modified at or before `cutoff`."""
        with Session(self.engine) as session:
            return list(
                session.exec(
                    select(ArtifactRecord).where(
                        ArtifactRecord.repository_id == repository_id,
                        ArtifactRecord.last_modified <= _naive_utc(cutoff),
                    )
                ).all()
            )
