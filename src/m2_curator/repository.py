"""Runtime handle on a managed repository: its id, storage and layout."""

from __future__ import annotations

from dataclasses import dataclass, field

from m2_curator.config import ManagedRepositoryConfig
from m2_curator.layout import Maven2Layout, layout_for
from m2_curator.storage import FilesystemStorage, RepositoryStorage


@dataclass(frozen=True)
class ManagedRepository:
    id: str
    storage: RepositoryStorage
    layout: Maven2Layout = field(default_factory=Maven2Layout)
    releases: bool = True
    snapshots: bool = True

    @classmethod
    def from_config(cls, config: ManagedRepositoryConfig) -> "ManagedRepository":
        return cls(
            id=config.id,
            storage=FilesystemStorage(config.location),
            layout=layout_for(config.layout),
            releases=config.releases,
            snapshots=config.snapshots,
        )

    def lock_key(self, path: str) -> str:
        return f"{self.id}:{path}"
