from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class ArtifactRecord(SQLModel, table=True):
    """One artifact file of a managed repository, as seen by the last scan.

    `project_version` is the directory (base) version, `version` the file's
    own version (a unique snapshot version for timestamped builds).
    """
    __tablename__ = "artifact_record"
    __table_args__ = (
        UniqueConstraint("repository_id", "path", name="uq_artifact_record_path"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    repository_id: str = Field(index=True)
    path: str
    group_id: str
    artifact_id: str
    project_version: str = Field(index=True)
    version: str
    classifier: Optional[str] = Field(default=None)
    type: Optional[str] = Field(default=None)
    last_modified: datetime
