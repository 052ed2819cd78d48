"""Serialize VersionedMetadata to maven-metadata.xml."""

from __future__ import annotations

import logging

from lxml import etree

from m2_curator.exceptions import CuratorError, MetadataWriteError
from m2_curator.models import VersionedMetadata
from m2_curator.storage import RepositoryStorage

logger = logging.getLogger(__name__)


def _add_child(parent: etree._Element, tag: str, value: str | None) -> None:
    """Append `<tag>value</tag>` unless the value is blank."""
    if value is None or not str(value).strip():
        return
    child = etree.SubElement(parent, tag)
    child.text = str(value)


def build_metadata_element(metadata: VersionedMetadata) -> etree._Element:
    """Build the `<metadata>` tree with the fixed element order.

    `metadata > groupId, artifactId, version, plugins?, versioning?`
    `versioning > latest?, release?, snapshot?, versions?, lastUpdated?`
    """
    root = etree.Element("metadata")
    _add_child(root, "groupId", metadata.group_id)
    _add_child(root, "artifactId", metadata.artifact_id)
    _add_child(root, "version", metadata.version)

    if metadata.plugins:
        plugins = etree.SubElement(root, "plugins")
        for plugin in sorted(metadata.plugins, key=lambda p: p.sort_key()):
            node = etree.SubElement(plugins, "plugin")
            _add_child(node, "prefix", plugin.prefix)
            _add_child(node, "artifactId", plugin.artifact_id)
            _add_child(node, "name", plugin.name)

    versioning = etree.Element("versioning")
    _add_child(versioning, "latest", metadata.latest_version)
    _add_child(versioning, "release", metadata.released_version)
    if metadata.snapshot is not None:
        snapshot = etree.SubElement(versioning, "snapshot")
        _add_child(snapshot, "buildNumber", str(metadata.snapshot.build_number))
        _add_child(snapshot, "timestamp", metadata.snapshot.timestamp)
    if metadata.available_versions:
        versions = etree.SubElement(versioning, "versions")
        for version in metadata.available_versions:
            _add_child(versions, "version", version)
    _add_child(versioning, "lastUpdated", metadata.last_updated)

    if len(versioning):
        root.append(versioning)
    return root


def metadata_to_bytes(metadata: VersionedMetadata) -> bytes:
    return etree.tostring(
        build_metadata_element(metadata),
        pretty_print=True,
        xml_declaration=True,
        encoding="UTF-8",
    )


def write_metadata(metadata: VersionedMetadata, storage: RepositoryStorage, path: str) -> None:
    """Write `metadata` to `path`.

    A destination that did not exist before a failed write is removed again,
    so no partial file is left behind.

    Raises:
        MetadataWriteError: If serialization or the storage write fails.
    """
    try:
        data = metadata_to_bytes(metadata)
    except (ValueError, TypeError) as exc:
        raise MetadataWriteError(f"Unable to serialize metadata for {path}: {exc}") from exc

    existed = storage.exists(path)
    try:
        storage.write(path, data)
    except CuratorError as exc:
        if not existed and storage.exists(path):
            try:
                storage.delete(path)
            except CuratorError:
                logger.warning("Could not remove partially written metadata %s", path)
        raise MetadataWriteError(f"Unable to write metadata {path}: {exc}") from exc
