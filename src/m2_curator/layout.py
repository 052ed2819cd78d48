"""Repository layouts: translating between paths and coordinates.

Only the Maven 2 ("default") layout is supported:

    group/as/dirs/artifactId/baseVersion/artifactId-version[-classifier].ext
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from enum import Enum

from m2_curator.checksums import is_companion_file
from m2_curator.exceptions import ContentNotFoundError, LayoutError
from m2_curator.models import ArtifactCoordinate
from m2_curator.storage import RepositoryStorage, normalize_path
from m2_curator.versions import get_base_version, get_release_version, is_generic_snapshot

MAVEN_METADATA = "maven-metadata.xml"

_DOUBLE_EXTENSIONS = ("tar.gz", "tar.bz2")


class LayoutKind(str, Enum):
    """Supported repository layouts, selected by the repository's `layout` field."""

    MAVEN2 = "default"


def is_metadata_file(name: str) -> bool:
    return name == MAVEN_METADATA or (name.startswith("maven-metadata-") and name.endswith(".xml"))


class Maven2Layout:
    """Path <-> coordinate translation for the Maven 2 layout."""

    kind = LayoutKind.MAVEN2

    def is_artifact_file(self, path: str) -> bool:
        """True for payload files: not metadata, checksums, signatures or dot files."""
        name = normalize_path(path).rsplit("/", 1)[-1]
        if not name or name.startswith("."):
            return False
        if is_metadata_file(name) or is_companion_file(name):
            return False
        return len(normalize_path(path).split("/")) >= 4

    def to_coordinate(self, path: str) -> ArtifactCoordinate:
        """Parse an artifact path into its coordinate.

        Raises:
            LayoutError: If the path does not follow the layout.
        """
        parts = normalize_path(path).split("/")
        if len(parts) < 4:
            raise LayoutError(f"Not enough path segments for an artifact: {path}")

        filename = parts[-1]
        base_version = parts[-2]
        artifact_id = parts[-3]
        group_id = ".".join(parts[:-3])

        prefix = artifact_id + "-"
        if not filename.startswith(prefix):
            raise LayoutError(f"File name {filename!r} does not start with artifactId {artifact_id!r}: {path}")
        remainder = filename[len(prefix):]

        version = self._match_version(remainder, base_version)
        if version is None:
            raise LayoutError(f"File name {filename!r} does not carry version {base_version!r}: {path}")

        rest = remainder[len(version):]
        classifier: str | None = None
        if rest.startswith("-"):
            classifier, dot, ext = rest[1:].partition(".")
            if not dot or not classifier:
                raise LayoutError(f"Missing classifier or extension in {filename!r}: {path}")
        elif rest.startswith("."):
            ext = rest[1:]
        else:
            raise LayoutError(f"Unable to split version from {filename!r}: {path}")

        ext = self._extension(ext)
        if not ext:
            raise LayoutError(f"Missing extension in {filename!r}: {path}")

        return ArtifactCoordinate(
            group_id=group_id,
            artifact_id=artifact_id,
            version=version,
            classifier=classifier,
            type=ext,
        )

    @staticmethod
    def _match_version(remainder: str, base_version: str) -> str | None:
        if is_generic_snapshot(base_version):
            release = re.escape(get_release_version(base_version))
            m = re.match(release + r"-[0-9]{8}\.[0-9]{6}-[0-9]+", remainder)
            if m is not None:
                return m.group(0)
        if remainder.startswith(base_version) and remainder[len(base_version):][:1] in ("-", "."):
            return base_version
        return None

    @staticmethod
    def _extension(ext: str) -> str:
        for double in _DOUBLE_EXTENSIONS:
            if ext.endswith(double):
                return double
        return ext.rsplit(".", 1)[-1] if ext else ext

    def to_path(self, coordinate: ArtifactCoordinate) -> str:
        """Return the artifact's repository path."""
        if not coordinate.version or not coordinate.type:
            raise LayoutError(f"Artifact path needs a version and a type: {coordinate.to_key()}")
        name = f"{coordinate.artifact_id}-{coordinate.version}"
        if coordinate.classifier:
            name += f"-{coordinate.classifier}"
        return f"{self.version_dir(coordinate)}/{name}.{coordinate.type}"

    def project_dir(self, coordinate: ArtifactCoordinate) -> str:
        return f"{coordinate.group_id.replace('.', '/')}/{coordinate.artifact_id}"

    def version_dir(self, coordinate: ArtifactCoordinate) -> str:
        if not coordinate.version:
            raise LayoutError(f"No version on {coordinate.compact()}")
        return f"{self.project_dir(coordinate)}/{get_base_version(coordinate.version)}"

    def metadata_path(self, coordinate: ArtifactCoordinate) -> str:
        """Project-level metadata path when `version` is None, version-level otherwise."""
        if coordinate.version:
            return f"{self.version_dir(coordinate)}/{MAVEN_METADATA}"
        return f"{self.project_dir(coordinate)}/{MAVEN_METADATA}"

    def project_of(self, selector: ArtifactCoordinate) -> ArtifactCoordinate:
        return selector.to_project()

    def versions_of(self, storage: RepositoryStorage, project: ArtifactCoordinate) -> set[str]:
        """Version directory names under a project that hold at least one artifact."""
        project_dir = self.project_dir(project)
        if not storage.is_container(project_dir):
            return set()
        versions: set[str] = set()
        for asset in storage.list(project_dir):
            if not asset.container:
                continue
            if any(not child.container and self.is_artifact_file(child.path) for child in storage.list(asset.path)):
                versions.add(asset.name)
        return versions

    def artifact_stream_of(
        self, storage: RepositoryStorage, selector: ArtifactCoordinate
    ) -> Iterator[tuple[str, ArtifactCoordinate]]:
        """Yield `(path, coordinate)` for each artifact file in a version directory.

        Files that do not parse as artifacts of this project are skipped.
        """
        version_dir = self.version_dir(selector)
        try:
            assets = storage.list(version_dir)
        except ContentNotFoundError:
            return
        for asset in assets:
            if asset.container or not self.is_artifact_file(asset.path):
                continue
            try:
                coordinate = self.to_coordinate(asset.path)
            except LayoutError:
                continue
            if coordinate.artifact_id != selector.artifact_id:
                continue
            yield asset.path, coordinate


def layout_for(kind: LayoutKind | str) -> Maven2Layout:
    """Return the layout implementation for a repository's layout kind."""
    kind = LayoutKind(kind)
    if kind is LayoutKind.MAVEN2:
        return Maven2Layout()
    raise LayoutError(f"Unsupported repository layout: {kind}")
