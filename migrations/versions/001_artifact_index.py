"""Artifact side index

Revision ID: 001_artifact_index
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_artifact_index"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "artifact_record",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("repository_id", sa.String(), nullable=False),
        sa.Column("path", sa.String(), nullable=False),
        sa.Column("group_id", sa.String(), nullable=False),
        sa.Column("artifact_id", sa.String(), nullable=False),
        sa.Column("project_version", sa.String(), nullable=False),
        sa.Column("version", sa.String(), nullable=False),
        sa.Column("classifier", sa.String(), nullable=True),
        sa.Column("type", sa.String(), nullable=True),
        sa.Column("last_modified", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("repository_id", "path", name="uq_artifact_record_path"),
    )
    op.create_index(
        op.f("ix_artifact_record_repository_id"),
        "artifact_record",
        ["repository_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_artifact_record_project_version"),
        "artifact_record",
        ["project_version"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_artifact_record_project_version"), table_name="artifact_record")
    op.drop_index(op.f("ix_artifact_record_repository_id"), table_name="artifact_record")
    op.drop_table("artifact_record")
