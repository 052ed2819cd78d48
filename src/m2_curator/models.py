"""Pydantic models for repository coordinates, metadata and purge results."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from m2_curator.exceptions import ErrorKind
from m2_curator.versions import get_base_version


class ArtifactCoordinate(BaseModel):
    """Maven coordinates (groupId, artifactId, version, classifier, type).

    `version` is None for project (group:artifact) references.
    """

    model_config = ConfigDict(frozen=True)

    group_id: str = Field(..., min_length=1)
    artifact_id: str = Field(..., min_length=1)
    version: str | None = None
    classifier: str | None = None
    type: str | None = None

    def to_key(self) -> str:
        """Return `group:artifact:version:classifier:type` with blanks for absent fields."""
        return ":".join(
            [self.group_id, self.artifact_id, self.version or "", self.classifier or "", self.type or ""]
        )

    def to_versionless_key(self) -> str:
        return ":".join([self.group_id, self.artifact_id, self.classifier or "", self.type or ""])

    def compact(self) -> str:
        """Return `groupId:artifactId[:version]`."""
        if self.version:
            return f"{self.group_id}:{self.artifact_id}:{self.version}"
        return f"{self.group_id}:{self.artifact_id}"

    def to_project(self) -> ArtifactCoordinate:
        """Drop everything below the project level."""
        return ArtifactCoordinate(group_id=self.group_id, artifact_id=self.artifact_id)

    def to_versioned(self) -> ArtifactCoordinate:
        """Keep group, artifact and the directory (base) version only."""
        return ArtifactCoordinate(
            group_id=self.group_id,
            artifact_id=self.artifact_id,
            version=get_base_version(self.version) if self.version else None,
        )

    def with_version(self, version: str) -> ArtifactCoordinate:
        return self.model_copy(update={"version": version})


class SnapshotDescriptor(BaseModel):
    """The `<snapshot>` block of a version-level metadata file.

    A generic `-SNAPSHOT` version is recorded with no timestamp and build 0.
    """

    timestamp: str | None = None
    build_number: int = Field(default=0, ge=0)

    def normalized_timestamp(self) -> int | None:
        """Return `yyyyMMddHHmmss` as an int, or None when unparsable."""
        if not self.timestamp:
            return None
        digits = self.timestamp.replace(".", "")
        if not digits.isdigit():
            return None
        return int(digits)


class PluginDescriptor(BaseModel):
    """A `<plugin>` entry of group-level metadata. Equal by artifactId only."""

    prefix: str | None = None
    artifact_id: str
    name: str | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PluginDescriptor):
            return NotImplemented
        return self.artifact_id == other.artifact_id

    def __hash__(self) -> int:
        return hash(self.artifact_id)

    def sort_key(self) -> str:
        """Serialization order: by prefix, else name, else artifactId."""
        return self.prefix or self.name or self.artifact_id


class VersionedMetadata(BaseModel):
    """In-memory form of one maven-metadata.xml document.

    Fields absent from the XML stay None (or empty for the lists).
    """

    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    latest_version: str | None = None
    released_version: str | None = None
    snapshot: SnapshotDescriptor | None = None
    plugins: list[PluginDescriptor] = Field(default_factory=list)
    available_versions: list[str] = Field(default_factory=list)
    last_updated: str | None = None


class RetentionPolicy(BaseModel):
    """Per-repository retention settings passed to each purge invocation."""

    days_older: int = Field(default=0, ge=0)
    retention_count: int = Field(default=2, ge=1)
    delete_released_snapshots: bool = False


class MetadataUpdateResult(BaseModel):
    """Outcome of a metadata update.

    `written` is False when the update had nothing to write (for example no
    snapshot versions were found); `error_kind` then says why.
    """

    path: str
    written: bool = False
    error_kind: ErrorKind | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None


class PurgeReport(BaseModel):
    """What a purge deleted, and whether the metadata refresh afterwards failed."""

    repository_id: str
    trigger_path: str
    deleted_files: list[str] = Field(default_factory=list)
    deleted_versions: list[str] = Field(default_factory=list)
    metadata_updates: list[MetadataUpdateResult] = Field(default_factory=list)
    metadata_stale: bool = False
    errors: list[str] = Field(default_factory=list)

    def merge(self, other: PurgeReport) -> PurgeReport:
        """Combine two reports for the same trigger."""
        return PurgeReport(
            repository_id=self.repository_id,
            trigger_path=self.trigger_path,
            deleted_files=[*self.deleted_files, *other.deleted_files],
            deleted_versions=[*self.deleted_versions, *other.deleted_versions],
            metadata_updates=[*self.metadata_updates, *other.metadata_updates],
            metadata_stale=self.metadata_stale or other.metadata_stale,
            errors=[*self.errors, *other.errors],
        )
