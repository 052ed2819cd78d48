"""Retention purges for snapshot artifacts.

Each strategy is triggered by one artifact path. It picks files in that
artifact's version directory, deletes them together with their checksum and
signature companions, and refreshes maven-metadata.xml afterwards. Deletions
are never rolled back: when the metadata refresh fails, the returned
`PurgeReport` lists the deleted files and sets `metadata_stale`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta, timezone

from m2_curator.checksums import is_companion_file
from m2_curator.db import ArtifactIndex
from m2_curator.exceptions import ContentNotFoundError, CuratorError, LayoutError
from m2_curator.layout import Maven2Layout
from m2_curator.metadata_tools import MetadataUpdater
from m2_curator.models import ArtifactCoordinate, PurgeReport, RetentionPolicy
from m2_curator.repository import ManagedRepository
from m2_curator.storage import RepositoryStorage, StorageAsset
from m2_curator.versions import get_release_version, is_snapshot, parse_unique_snapshot, sort_versions

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_time(version: str) -> datetime | None:
    """UTC time encoded in a unique snapshot version (`1.0-20070427.065136-1`), else None."""
    unique = parse_unique_snapshot(version)
    if unique is None:
        return None
    try:
        return datetime.strptime(unique.timestamp, "%Y%m%d.%H%M%S").replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def companions_of(artifact_name: str, siblings: Iterable[StorageAsset]) -> list[StorageAsset]:
    """Checksum/signature files next to an artifact (`x.jar.sha1`, `x.jar.asc`, ...)."""
    found = []
    for asset in siblings:
        if asset.container or asset.name == artifact_name:
            continue
        rest = asset.name[len(artifact_name):]
        if asset.name.startswith(artifact_name) and rest.startswith(".") and is_companion_file(asset.name):
            found.append(asset)
    return found


class RepositoryPurge(ABC):
    """Shared plumbing for the purge strategies."""

    def __init__(
        self,
        repository: ManagedRepository,
        updater: MetadataUpdater,
        index: ArtifactIndex | None = None,
    ) -> None:
        self.repository = repository
        self.updater = updater
        self.index = index

    @property
    def layout(self) -> Maven2Layout:
        return self.repository.layout

    @property
    def storage(self) -> RepositoryStorage:
        return self.repository.storage

    def _report(self, path: str) -> PurgeReport:
        return PurgeReport(repository_id=self.repository.id, trigger_path=path)

    def _snapshot_coordinate(self, path: str) -> ArtifactCoordinate | None:
        """Coordinate of a snapshot artifact path, or None when the path is not one.

        Raises:
            LayoutError: If an artifact path cannot be parsed.
        """
        if not self.layout.is_artifact_file(path):
            logger.debug("Not an artifact, skipping purge of %s", path)
            return None
        coordinate = self.layout.to_coordinate(path)
        if not coordinate.version or not is_snapshot(coordinate.version):
            return None
        return coordinate

    def _version_lock(self, coordinate: ArtifactCoordinate):
        return self.updater.locks.write_lock(self.repository.lock_key(self.layout.version_dir(coordinate) + "/"))

    def _delete_artifacts(self, paths: Sequence[str], report: PurgeReport) -> None:
        """Delete artifact files and their companions; the caller holds the version lock."""
        if not paths:
            return
        directory = self.storage.get_parent(paths[0]).path
        siblings = self.storage.list(directory)
        for path in paths:
            name = path.rsplit("/", 1)[-1]
            targets = [path, *(c.path for c in companions_of(name, siblings))]
            for target in targets:
                try:
                    self.storage.delete(target)
                except ContentNotFoundError:
                    logger.debug("Already gone: %s", target)
                    continue
                report.deleted_files.append(target)
                logger.info("Purged %s from repository %s", target, self.repository.id)
                if self.index is not None:
                    self.index.remove_file(self.repository.id, target)

    def _refresh_metadata(
        self, coordinate: ArtifactCoordinate, report: PurgeReport, *, version_level: bool = True
    ) -> None:
        """Bring maven-metadata.xml back in line with the files on disk.

        A result that was not written while its file is still on disk leaves
        the report flagged as stale, same as a failed update.
        """
        try:
            if version_level:
                report.metadata_updates.append(self.updater.update_version_metadata(self.repository, coordinate))
            report.metadata_updates.append(self.updater.update_project_metadata(self.repository, coordinate))
            for result in report.metadata_updates:
                if not result.ok and self.storage.exists(result.path):
                    report.metadata_stale = True
                    report.errors.append(f"{result.error_kind.value}: {result.message}")
        except CuratorError as exc:
            report.metadata_stale = True
            report.errors.append(f"{exc.kind.value}: {exc}")
            logger.error(
                "Deleted %d file(s) for %s but metadata is stale: %s",
                len(report.deleted_files),
                coordinate.compact(),
                exc,
            )

    @abstractmethod
    def process(self, path: str, policy: RetentionPolicy) -> PurgeReport: ...


class DaysOldPurge(RepositoryPurge):
    """Delete snapshot builds that are at least `days_older` days old.

    The newest `retention_count` builds of the version directory are always
    kept. A unique snapshot's age comes from the timestamp in its version;
    other builds are judged by file modification time.
    """

    def __init__(
        self,
        repository: ManagedRepository,
        updater: MetadataUpdater,
        index: ArtifactIndex | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        super().__init__(repository, updater, index)
        self.now = now

    def process(self, path: str, policy: RetentionPolicy) -> PurgeReport:
        report = self._report(path)
        if policy.days_older <= 0:
            return report
        coordinate = self._snapshot_coordinate(path)
        if coordinate is None:
            return report

        cutoff = self.now() - timedelta(days=policy.days_older)
        with self._version_lock(coordinate):
            builds: dict[str, list[str]] = defaultdict(list)
            for artifact_path, artifact in self.layout.artifact_stream_of(self.storage, coordinate):
                if artifact.version and is_snapshot(artifact.version):
                    builds[artifact.version].append(artifact_path)

            doomed: list[str] = []
            versions: set[str] = set()
            candidates = sort_versions(builds)[: max(len(builds) - policy.retention_count, 0)]
            for version in candidates:
                built = build_time(version)
                for artifact_path in builds[version]:
                    stamp = built if built is not None else self.storage.last_modified(artifact_path)
                    if stamp <= cutoff:
                        doomed.append(artifact_path)
                        versions.add(version)
            self._delete_artifacts(doomed, report)
            report.deleted_versions.extend(sort_versions(versions))

        if report.deleted_files:
            self._refresh_metadata(coordinate, report)
        return report


class RetentionCountPurge(RepositoryPurge):
    """Keep only the newest `retention_count` snapshot builds of each artifact family.

    A family is one classifier + type combination (`.jar`, `.pom`,
    `-sources.jar`, ...). Each family is trimmed on its own.
    """

    def process(self, path: str, policy: RetentionPolicy) -> PurgeReport:
        report = self._report(path)
        coordinate = self._snapshot_coordinate(path)
        if coordinate is None:
            return report

        with self._version_lock(coordinate):
            families: dict[tuple[str, str], dict[str, list[str]]] = defaultdict(lambda: defaultdict(list))
            for artifact_path, artifact in self.layout.artifact_stream_of(self.storage, coordinate):
                if artifact.version and is_snapshot(artifact.version):
                    family = (artifact.classifier or "", artifact.type or "")
                    families[family][artifact.version].append(artifact_path)

            doomed: list[str] = []
            versions: set[str] = set()
            for _, builds in sorted(families.items()):
                ordered = sort_versions(builds, reverse=True)
                for version in ordered[policy.retention_count:]:
                    doomed.extend(builds[version])
                    versions.add(version)
            self._delete_artifacts(doomed, report)
            report.deleted_versions.extend(sort_versions(versions))

        if report.deleted_files:
            self._refresh_metadata(coordinate, report)
        return report


class ReleasedSnapshotsPurge(RepositoryPurge):
    """Remove a whole snapshot version directory once its release exists.

    The release is looked up in this repository and in every other managed
    repository that holds releases.
    """

    def __init__(
        self,
        repository: ManagedRepository,
        updater: MetadataUpdater,
        index: ArtifactIndex | None = None,
        release_repositories: Iterable[ManagedRepository] = (),
    ) -> None:
        super().__init__(repository, updater, index)
        self.release_repositories = [r for r in release_repositories if r.id != repository.id]

    def _release_exists(self, coordinate: ArtifactCoordinate) -> bool:
        release = get_release_version(coordinate.version or "")
        project = coordinate.to_project()
        for repo in [self.repository, *self.release_repositories]:
            if repo is not self.repository and not repo.releases:
                continue
            if release in repo.layout.versions_of(repo.storage, project):
                logger.debug("Release %s of %s found in %s", release, project.compact(), repo.id)
                return True
        return False

    def process(self, path: str, policy: RetentionPolicy) -> PurgeReport:
        report = self._report(path)
        if not policy.delete_released_snapshots:
            return report
        coordinate = self._snapshot_coordinate(path)
        if coordinate is None or not self._release_exists(coordinate):
            return report

        version_dir = self.layout.version_dir(coordinate)
        with self._version_lock(coordinate):
            if not self.storage.is_container(version_dir):
                return report
            files = [a.path for a in self.storage.list(version_dir) if not a.container]
            try:
                self.storage.delete(version_dir)
            except ContentNotFoundError:
                return report
            report.deleted_files.extend(files)
            report.deleted_versions.append(version_dir.rsplit("/", 1)[-1])
            logger.info("Purged released snapshot %s from repository %s", version_dir, self.repository.id)
            if self.index is not None:
                versioned = coordinate.to_versioned()
                self.index.remove_version(
                    self.repository.id, versioned.group_id, versioned.artifact_id, versioned.version or ""
                )

        self._refresh_metadata(coordinate, report, version_level=False)
        return report


class RepositoryPurgeConsumer:
    """Runs the enabled purge strategies for one trigger path.

    Released-snapshot cleanup runs first; then the days-old purge when
    `days_older > 0`, else the retention-count purge.
    """

    def __init__(
        self,
        repository: ManagedRepository,
        policy: RetentionPolicy,
        updater: MetadataUpdater,
        index: ArtifactIndex | None = None,
        release_repositories: Iterable[ManagedRepository] = (),
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.repository = repository
        self.policy = policy
        self.released = ReleasedSnapshotsPurge(repository, updater, index, release_repositories)
        self.days_old = DaysOldPurge(repository, updater, index, now=now)
        self.retention = RetentionCountPurge(repository, updater, index)

    def process(self, path: str) -> PurgeReport:
        report = PurgeReport(repository_id=self.repository.id, trigger_path=path)
        if not self.repository.layout.is_artifact_file(path):
            logger.debug("Not an artifact, skipping %s", path)
            return report
        try:
            report = report.merge(self.released.process(path, self.policy))
            if report.deleted_files:
                return report
            if self.policy.days_older > 0:
                return report.merge(self.days_old.process(path, self.policy))
            return report.merge(self.retention.process(path, self.policy))
        except LayoutError as exc:
            logger.warning("Skipping %s: %s", path, exc)
            report.errors.append(f"{exc.kind.value}: {exc}")
            return report


def purge_by_age(
    repository: ManagedRepository,
    trigger_path: str,
    policy: RetentionPolicy,
    updater: MetadataUpdater | None = None,
    index: ArtifactIndex | None = None,
    now: Callable[[], datetime] = _utcnow,
) -> PurgeReport:
    return DaysOldPurge(repository, updater or MetadataUpdater(), index, now=now).process(trigger_path, policy)


def purge_by_retention_count(
    repository: ManagedRepository,
    trigger_path: str,
    policy: RetentionPolicy,
    updater: MetadataUpdater | None = None,
    index: ArtifactIndex | None = None,
) -> PurgeReport:
    return RetentionCountPurge(repository, updater or MetadataUpdater(), index).process(trigger_path, policy)


def purge_released_snapshots(
    repository: ManagedRepository,
    trigger_path: str,
    policy: RetentionPolicy,
    updater: MetadataUpdater | None = None,
    index: ArtifactIndex | None = None,
    release_repositories: Iterable[ManagedRepository] = (),
) -> PurgeReport:
    return ReleasedSnapshotsPurge(
        repository, updater or MetadataUpdater(), index, release_repositories
    ).process(trigger_path, policy)
