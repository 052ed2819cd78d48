"""Configuration for managed repositories, proxy connectors and the side index.

Repository configuration is read from a JSON file; the side-index database
settings come from environment variables.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from m2_curator.layout import LayoutKind
from m2_curator.models import RetentionPolicy


class ManagedRepositoryConfig(BaseModel):
    """One managed (locally hosted) repository.

    `releases` / `snapshots` flag which kinds of versions it holds; the
    remaining fields make up its retention policy.
    """

    id: str = Field(..., min_length=1)
    name: str | None = None
    location: Path
    layout: LayoutKind = LayoutKind.MAVEN2
    releases: bool = True
    snapshots: bool = False
    days_older: int = Field(default=0, ge=0)
    retention_count: int = Field(default=2, ge=1)
    delete_released_snapshots: bool = False

    def retention_policy(self) -> RetentionPolicy:
        return RetentionPolicy(
            days_older=self.days_older,
            retention_count=self.retention_count,
            delete_released_snapshots=self.delete_released_snapshots,
        )


class ProxyConnectorConfig(BaseModel):
    """A managed repository proxying a remote one (source -> target)."""

    source_repo_id: str
    target_repo_id: str


class CuratorConfig(BaseModel):
    managed_repositories: list[ManagedRepositoryConfig] = Field(default_factory=list)
    proxy_connectors: list[ProxyConnectorConfig] = Field(default_factory=list)

    @classmethod
    def load(cls, path: str | Path) -> "CuratorConfig":
        """Load configuration from a JSON file.

        Raises:
            ValueError: If the file is missing or invalid.
        """
        path = Path(path)
        try:
            return cls.model_validate_json(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ValueError(f"Configuration file not found: {path}") from exc
        except ValidationError as exc:
            raise ValueError(f"Invalid configuration file {path}: {exc}") from exc

    @classmethod
    def from_env(cls) -> "CuratorConfig":
        """Load the file named by M2C_CONFIG (default: "m2-curator.json")."""
        return cls.load(os.getenv("M2C_CONFIG", "m2-curator.json"))

    def managed_repository(self, repo_id: str) -> ManagedRepositoryConfig:
        for repo in self.managed_repositories:
            if repo.id == repo_id:
                return repo
        raise ValueError(f"Unknown managed repository: {repo_id}")


@dataclass
class DatabaseConfig:
    """Side-index database configuration.

    Attributes:
        db_type: "none" (no side index) or "sqlite"
        sqlite_path: Path to SQLite database file (only for sqlite)
    """

    db_type: str  # "none" or "sqlite"
    sqlite_path: Path | None = None

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Create configuration from environment variables.

        Environment variables:
            M2C_DB_TYPE: "none" or "sqlite" (default: "none")
            M2C_DB_PATH: SQLite database path (default: "artifacts.db")
        """
        db_type = os.getenv("M2C_DB_TYPE", "none").lower()
        if db_type == "sqlite":
            return cls(
                db_type="sqlite",
                sqlite_path=Path(os.getenv("M2C_DB_PATH", "artifacts.db")).resolve(),
            )
        return cls(db_type=db_type)

    @property
    def enabled(self) -> bool:
        return self.db_type != "none"

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If required configuration is missing.
        """
        if self.db_type == "sqlite":
            if not self.sqlite_path:
                raise ValueError("M2C_DB_PATH is required for SQLite")
        elif self.db_type != "none":
            raise ValueError(f"Unsupported database type: {self.db_type}")
