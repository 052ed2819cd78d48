"""Rebuild maven-metadata.xml files from the repository contents.

The updater gathers the versions actually present on disk, folds in what
each proxied remote last reported (`maven-metadata-<proxyId>.xml` shadow
files), recomputes latest/release/snapshot information, then writes the
canonical file and its checksums.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from m2_curator.checksums import DEFAULT_ALGORITHMS, ChecksumAlgorithm, fix_checksums
from m2_curator.exceptions import (
    ContentNotFoundError,
    ErrorKind,
    LayoutError,
    MetadataProcessingError,
    MetadataReadError,
)
from m2_curator.layout import MAVEN_METADATA
from m2_curator.locks import PathLockRegistry
from m2_curator.merge import NO_OPINION, last_updated_value, merge
from m2_curator.models import (
    ArtifactCoordinate,
    MetadataUpdateResult,
    PluginDescriptor,
    SnapshotDescriptor,
    VersionedMetadata,
)
from m2_curator.parser import read_metadata
from m2_curator.proxies import ProxyRegistry
from m2_curator.repository import ManagedRepository
from m2_curator.versions import (
    TIMESTAMP_PATTERN,
    get_base_version,
    get_release_version,
    has_number,
    is_generic_snapshot,
    is_snapshot,
    is_unique_snapshot,
    parse_unique_snapshot,
    sort_versions,
)
from m2_curator.writer import write_metadata

logger = logging.getLogger(__name__)


def _split_metadata_path(path: str) -> list[str]:
    if not path.replace("\\", "/").endswith("/" + MAVEN_METADATA):
        raise LayoutError(f"Not a metadata file: {path}")
    return [p for p in path.replace("\\", "/").split("/") if p][:-1]


def to_versioned_reference(path: str) -> ArtifactCoordinate:
    """`com/foo/foo-tool/1.0/maven-metadata.xml` -> `com.foo:foo-tool:1.0`.

    Raises:
        LayoutError: If the path is not a version-level metadata path.
    """
    parts = _split_metadata_path(path)
    if len(parts) < 3:
        raise LayoutError(f"Not a versioned metadata path: {path}")
    if not has_number(parts[-1]):
        raise LayoutError(f"Not a versioned reference, version id on path has no number in it: {path}")
    return ArtifactCoordinate(group_id=".".join(parts[:-2]), artifact_id=parts[-2], version=parts[-1])


def to_project_reference(path: str) -> ArtifactCoordinate:
    """`com/foo/foo-tool/maven-metadata.xml` -> `com.foo:foo-tool`."""
    parts = _split_metadata_path(path)
    if len(parts) < 2:
        raise LayoutError(f"Not a project metadata path: {path}")
    return ArtifactCoordinate(group_id=".".join(parts[:-1]), artifact_id=parts[-1])


def repository_specific_name(proxy_id: str, path: str) -> str:
    """`a/b/maven-metadata.xml` -> `a/b/maven-metadata-<proxy_id>.xml`."""
    directory, sep, _ = path.rpartition("/")
    return f"{directory}{sep}maven-metadata-{proxy_id}.xml"


def _format_last_updated(value: int) -> str:
    return str(value).zfill(14)


def _apply_versions(metadata: VersionedMetadata, versions: Iterable[str]) -> None:
    """Set available/latest/release from a set of versions."""
    ordered = sort_versions(set(versions))
    if not ordered:
        return
    released = [v for v in ordered if not is_snapshot(v)]
    metadata.available_versions = ordered
    metadata.latest_version = ordered[-1]
    metadata.released_version = released[-1] if released else None


class MetadataUpdater:
    """Recomputes and rewrites maven-metadata.xml for a managed repository."""

    def __init__(
        self,
        proxies: ProxyRegistry | None = None,
        locks: PathLockRegistry | None = None,
        algorithms: Iterable[ChecksumAlgorithm] = DEFAULT_ALGORITHMS,
    ) -> None:
        self.proxies = proxies or ProxyRegistry()
        self.locks = locks or PathLockRegistry()
        self.algorithms = tuple(algorithms)

    # -- reading ---------------------------------------------------------

    def _read_primary(self, repository: ManagedRepository, path: str) -> VersionedMetadata | None:
        """Read the canonical file; missing -> None, invalid -> MetadataReadError."""
        storage = repository.storage
        if not storage.exists(path) or storage.is_container(path):
            return None
        try:
            return read_metadata(storage, path)
        except ContentNotFoundError:
            return None

    def read_proxy_metadata(
        self, repository: ManagedRepository, metadata_path: str, proxy_id: str
    ) -> VersionedMetadata | None:
        """Read one proxy shadow file next to `metadata_path`.

        Missing or unreadable shadow files are skipped (None); storage access
        failures propagate.
        """
        shadow = repository_specific_name(proxy_id, metadata_path)
        storage = repository.storage
        try:
            with self.locks.read_lock(repository.lock_key(shadow)):
                if storage.is_container(shadow):
                    logger.debug("Shadow metadata %s is a container, skipping", shadow)
                    return None
                return read_metadata(storage, shadow)
        except ContentNotFoundError:
            logger.debug("No shadow metadata %s for proxy %s", shadow, proxy_id)
            return None
        except MetadataReadError as exc:
            logger.warning("Skipping unreadable shadow metadata %s: %s", shadow, exc)
            return None

    def _shadow_metadata(self, repository: ManagedRepository, metadata_path: str) -> list[VersionedMetadata]:
        found = []
        for proxy_id in self.proxies.proxies_for(repository.id):
            shadow = self.read_proxy_metadata(repository, metadata_path, proxy_id)
            if shadow is not None:
                found.append(shadow)
        return found

    def gather_snapshot_versions(self, repository: ManagedRepository, coordinate: ArtifactCoordinate) -> set[str]:
        """Every snapshot version observed for a versioned reference.

        Combines the versions of the artifact files in the version directory
        with the versions and snapshot descriptors of each proxy's shadow
        metadata.
        """
        layout = repository.layout
        versioned = coordinate.to_versioned()
        found = {
            c.version
            for _, c in layout.artifact_stream_of(repository.storage, versioned)
            if c.version and is_snapshot(c.version)
        }

        base_version = versioned.version or ""
        release = get_release_version(base_version)
        for shadow in self._shadow_metadata(repository, layout.metadata_path(versioned)):
            found.update(v for v in shadow.available_versions if get_base_version(v) == base_version)
            snap = shadow.snapshot
            if snap is not None and snap.timestamp and snap.build_number > 0:
                found.add(f"{release}-{snap.timestamp}-{snap.build_number}")
        return found

    def _find_possible_versions(self, repository: ManagedRepository, directory: str) -> set[str]:
        """Names of sub-directories that contain at least one `.pom` file."""
        storage = repository.storage
        if not storage.is_container(directory):
            return set()
        result = set()
        for asset in storage.list(directory):
            if asset.container and any(
                not f.container and f.name.endswith(".pom") for f in storage.list(asset.path)
            ):
                result.add(asset.name)
        return result

    # -- writing ---------------------------------------------------------

    def _write(self, repository: ManagedRepository, metadata: VersionedMetadata, path: str) -> None:
        write_metadata(metadata, repository.storage, path)
        fix_checksums(repository.storage, path, self.algorithms)
        logger.debug("Wrote %s in repository %s", path, repository.id)

    def _remove(self, repository: ManagedRepository, path: str) -> None:
        """Delete an orphaned metadata file and its checksum side files."""
        for target in (path, *(path + a.extension for a in self.algorithms)):
            try:
                repository.storage.delete(target)
            except ContentNotFoundError:
                continue
            logger.info("Removed orphaned %s from repository %s", target, repository.id)

    def update_version_metadata(
        self, repository: ManagedRepository, coordinate: ArtifactCoordinate
    ) -> MetadataUpdateResult:
        """Rewrite the version-level maven-metadata.xml for `group:artifact:version`.

        Snapshot references get a `<snapshot>` block describing the newest
        build observed locally or through a proxy; release references get
        the identity fields only.

        Raises:
            MetadataProcessingError: If the existing file or the newest snapshot cannot be processed.
            StorageAccessError: On storage failures.
        """
        if not coordinate.version:
            raise LayoutError(f"Version metadata needs a version: {coordinate.compact()}")
        path = repository.layout.metadata_path(coordinate)

        with self.locks.write_lock(repository.lock_key(path)):
            existing = self._read_primary(repository, path)
            last_updated = last_updated_value(existing.last_updated) if existing else NO_OPINION

            metadata = VersionedMetadata(group_id=coordinate.group_id, artifact_id=coordinate.artifact_id)
            if is_snapshot(coordinate.version):
                metadata.version = get_base_version(coordinate.version)
                versions = self.gather_snapshot_versions(repository, coordinate)
                if not versions:
                    message = f"No snapshot versions found on reference [{coordinate.compact()}]"
                    logger.info(message)
                    self._remove(repository, path)
                    return MetadataUpdateResult(path=path, error_kind=ErrorKind.NOT_FOUND, message=message)

                latest = sort_versions(versions)[-1]
                if is_unique_snapshot(latest):
                    unique = parse_unique_snapshot(latest)
                    if unique is None or not TIMESTAMP_PATTERN.match(unique.timestamp):
                        raise MetadataProcessingError(f"Unable to parse unique snapshot version <{latest}>")
                    metadata.snapshot = SnapshotDescriptor(
                        timestamp=unique.timestamp, build_number=unique.build_number
                    )
                    last_updated = max(last_updated, int(unique.timestamp.replace(".", "")))
                elif is_generic_snapshot(latest):
                    metadata.snapshot = SnapshotDescriptor()
                else:
                    raise MetadataProcessingError(
                        f"Unable to process snapshot version <{latest}> reference <{coordinate.compact()}>"
                    )
            else:
                metadata.version = coordinate.version

            if last_updated > 0:
                metadata.last_updated = _format_last_updated(last_updated)

            self._write(repository, metadata, path)
        return MetadataUpdateResult(path=path, written=True)

    def update_project_metadata(
        self, repository: ManagedRepository, coordinate: ArtifactCoordinate
    ) -> MetadataUpdateResult:
        """Rewrite the project-level maven-metadata.xml for `group:artifact`.

        When no version exists anywhere but plugins are known, the file is
        treated as group metadata: the artifactId was really the last
        segment of the groupId.
        """
        project = repository.layout.project_of(coordinate)
        path = repository.layout.metadata_path(project)

        with self.locks.write_lock(repository.lock_key(path)):
            existing = self._read_primary(repository, path)
            last_updated = last_updated_value(existing.last_updated) if existing else NO_OPINION

            versions = repository.layout.versions_of(repository.storage, project)
            plugins: list[PluginDescriptor] = list(existing.plugins) if existing else []
            for shadow in self._shadow_metadata(repository, path):
                versions.update(shadow.available_versions)
                plugins.extend(p for p in shadow.plugins if p not in plugins)
                last_updated = max(last_updated, last_updated_value(shadow.last_updated))

            metadata = VersionedMetadata(group_id=project.group_id, artifact_id=project.artifact_id)
            metadata.plugins = plugins
            if versions:
                _apply_versions(metadata, versions)
            elif plugins:
                metadata.group_id = f"{project.group_id}.{project.artifact_id}"
                metadata.artifact_id = None

            if last_updated > 0:
                metadata.last_updated = _format_last_updated(last_updated)

            self._write(repository, metadata, path)
        return MetadataUpdateResult(path=path, written=True)

    def update_metadata_path(self, repository: ManagedRepository, logical_path: str) -> MetadataUpdateResult:
        """Merge the canonical file at `logical_path` with every shadow file and rewrite it."""
        with self.locks.write_lock(repository.lock_key(logical_path)):
            sources: list[VersionedMetadata] = []
            existing = self._read_primary(repository, logical_path)
            if existing is not None:
                sources.append(existing)
            sources.extend(self._shadow_metadata(repository, logical_path))

            if not sources:
                message = f"No metadata to update for {logical_path}"
                logger.debug(message)
                return MetadataUpdateResult(path=logical_path, error_kind=ErrorKind.NOT_FOUND, message=message)

            metadata = sources[0]
            for secondary in sources[1:]:
                metadata = merge(metadata, secondary)

            parent = repository.storage.get_parent(logical_path)
            versions = set(metadata.available_versions) | self._find_possible_versions(repository, parent.path)
            if versions:
                _apply_versions(metadata, versions)

            self._write(repository, metadata, logical_path)
        return MetadataUpdateResult(path=logical_path, written=True)
