"""Merge two VersionedMetadata documents field by field.

The primary document (usually the local maven-metadata.xml) wins unless it
has nothing to say; list fields are unioned, primary entries first.
"""

from __future__ import annotations

from datetime import datetime

from m2_curator.models import PluginDescriptor, SnapshotDescriptor, VersionedMetadata

LAST_UPDATED_FORMAT = "%Y%m%d%H%M%S"

NO_OPINION = -1


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _merge_scalar(primary: str | None, secondary: str | None) -> str | None:
    if _blank(primary) and not _blank(secondary):
        return secondary
    return primary


def _merge_snapshot(
    primary: SnapshotDescriptor | None, secondary: SnapshotDescriptor | None
) -> SnapshotDescriptor | None:
    if primary is None:
        return secondary
    if secondary is None:
        return primary
    p = primary.normalized_timestamp()
    s = secondary.normalized_timestamp()
    # Whole descriptor from the newer side; unparsable counts as oldest, ties keep primary.
    if (s if s is not None else NO_OPINION) > (p if p is not None else NO_OPINION):
        return secondary
    return primary


def _merge_versions(primary: list[str], secondary: list[str]) -> list[str]:
    merged: list[str] = []
    seen: set[str] = set()
    for version in [*primary, *secondary]:
        if version not in seen:
            seen.add(version)
            merged.append(version)
    return merged


def _merge_plugins(primary: list[PluginDescriptor], secondary: list[PluginDescriptor]) -> list[PluginDescriptor]:
    merged: list[PluginDescriptor] = []
    for plugin in [*primary, *secondary]:
        if plugin not in merged:
            merged.append(plugin)
    return merged


def last_updated_value(timestamp: str | None) -> int:
    """Parse `yyyyMMddHHmmss` into a sortable int; missing or bad -> NO_OPINION."""
    if _blank(timestamp):
        return NO_OPINION
    try:
        return int(datetime.strptime(timestamp.strip(), LAST_UPDATED_FORMAT).strftime(LAST_UPDATED_FORMAT))
    except ValueError:
        return NO_OPINION


def _merge_last_updated(primary: str | None, secondary: str | None) -> str | None:
    p = last_updated_value(primary)
    s = last_updated_value(secondary)
    if p == NO_OPINION and s == NO_OPINION:
        return None
    return secondary.strip() if s > p else primary.strip()


def merge(primary: VersionedMetadata, secondary: VersionedMetadata) -> VersionedMetadata:
    """Combine `primary` with `secondary`.

    Raises:
        ValueError: If either side is None; callers must check presence first.
    """
    if primary is None or secondary is None:
        raise ValueError("Cannot merge metadata: both primary and secondary documents are required")

    return VersionedMetadata(
        group_id=_merge_scalar(primary.group_id, secondary.group_id),
        artifact_id=_merge_scalar(primary.artifact_id, secondary.artifact_id),
        version=_merge_scalar(primary.version, secondary.version),
        latest_version=_merge_scalar(primary.latest_version, secondary.latest_version),
        released_version=_merge_scalar(primary.released_version, secondary.released_version),
        snapshot=_merge_snapshot(primary.snapshot, secondary.snapshot),
        plugins=_merge_plugins(primary.plugins, secondary.plugins),
        available_versions=_merge_versions(primary.available_versions, secondary.available_versions),
        last_updated=_merge_last_updated(primary.last_updated, secondary.last_updated),
    )
