"""Parse maven-metadata.xml documents using lxml."""

from __future__ import annotations

from lxml import etree

from m2_curator.exceptions import MetadataReadError
from m2_curator.models import PluginDescriptor, SnapshotDescriptor, VersionedMetadata
from m2_curator.storage import RepositoryStorage


def _text_first(node: etree._Element, xpath_expr: str) -> str | None:
    """Get text of the first matching element using namespace-agnostic XPath.

    Args:
        node: Root element to query under.
        xpath_expr: XPath expression (should use local-name()).

    Returns:
        Text content if found and non-empty, otherwise None.
    """
    found = node.xpath(xpath_expr)
    if not found:
        return None
    first = found[0]
    if isinstance(first, etree._Element):
        text = (first.text or "").strip()
        return text or None
    if isinstance(first, str):
        text = first.strip()
        return text or None
    return None


def _int_text(value: str | None) -> int:
    """Convert a `<buildNumber>` value to int; blank or garbage becomes 0."""
    if value is None:
        return 0
    try:
        return max(int(value), 0)
    except ValueError:
        return 0


def _parse_xml(data: bytes, source: str) -> etree._Element:
    """Parse XML bytes and return the root element.

    Raises:
        MetadataReadError: If XML cannot be parsed.
    """
    try:
        parser = etree.XMLParser(resolve_entities=False, no_network=True, recover=False)
        return etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise MetadataReadError(f"Failed to parse metadata: {source}") from exc


def parse_metadata_bytes(data: bytes, source: str = "<bytes>") -> VersionedMetadata:
    """Parse the bytes of a maven-metadata.xml document.

    Notes:
        - Namespace handling: uses `local-name()` XPath so it works with or without XML namespaces.
        - Nothing is inferred: an element missing from the XML stays None in the model.

    Raises:
        MetadataReadError: If the document is not well-formed or its root is not `<metadata>`.
    """
    root = _parse_xml(data, source)
    if etree.QName(root).localname != "metadata":
        raise MetadataReadError(f"Root element is not <metadata>: {source}")

    versioning = root.xpath("./*[local-name()='versioning']")
    versioning_node = versioning[0] if versioning else None

    snapshot: SnapshotDescriptor | None = None
    available: list[str] = []
    latest = release = last_updated = None
    if versioning_node is not None:
        latest = _text_first(versioning_node, "./*[local-name()='latest']")
        release = _text_first(versioning_node, "./*[local-name()='release']")
        last_updated = _text_first(versioning_node, "./*[local-name()='lastUpdated']")

        snapshot_nodes = versioning_node.xpath("./*[local-name()='snapshot']")
        if snapshot_nodes:
            snap = snapshot_nodes[0]
            snapshot = SnapshotDescriptor(
                timestamp=_text_first(snap, "./*[local-name()='timestamp']"),
                build_number=_int_text(_text_first(snap, "./*[local-name()='buildNumber']")),
            )

        for v in versioning_node.xpath("./*[local-name()='versions']/*[local-name()='version']"):
            text = (v.text or "").strip()
            if text:
                available.append(text)

    plugins: list[PluginDescriptor] = []
    for p in root.xpath("./*[local-name()='plugins']/*[local-name()='plugin']"):
        artifact_id = _text_first(p, "./*[local-name()='artifactId']")
        if artifact_id is None:
            continue
        plugins.append(
            PluginDescriptor(
                prefix=_text_first(p, "./*[local-name()='prefix']"),
                artifact_id=artifact_id,
                name=_text_first(p, "./*[local-name()='name']"),
            )
        )

    return VersionedMetadata(
        group_id=_text_first(root, "./*[local-name()='groupId']"),
        artifact_id=_text_first(root, "./*[local-name()='artifactId']"),
        version=_text_first(root, "./*[local-name()='version']"),
        latest_version=latest,
        released_version=release,
        snapshot=snapshot,
        plugins=plugins,
        available_versions=available,
        last_updated=last_updated,
    )


def read_metadata(storage: RepositoryStorage, path: str) -> VersionedMetadata:
    """Read and parse the metadata file at `path`.

    Raises:
        ContentNotFoundError: If the file does not exist.
        StorageAccessError: If the storage cannot be read.
        MetadataReadError: If the document is invalid.
    """
    return parse_metadata_bytes(storage.read(path), source=path)
