"""Custom exceptions for m2-curator."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Error categories reported by metadata updates and purges."""

    NOT_FOUND = "not_found"
    LAYOUT = "layout"
    METADATA = "metadata"
    STORAGE = "storage"


class CuratorError(Exception):
    """Base exception for m2-curator."""

    kind: ErrorKind = ErrorKind.METADATA


class ContentNotFoundError(CuratorError):
    """Raised when a coordinate or path has no content in the repository."""

    kind = ErrorKind.NOT_FOUND


class LayoutError(CuratorError):
    """Raised when a path cannot be decomposed into a valid coordinate."""

    kind = ErrorKind.LAYOUT


class MetadataProcessingError(CuratorError):
    """Raised when a maven-metadata.xml document cannot be processed."""

    kind = ErrorKind.METADATA


class MetadataReadError(MetadataProcessingError):
    """Raised when a metadata document cannot be read or parsed."""


class MetadataWriteError(MetadataProcessingError):
    """Raised when a metadata document cannot be written."""


class StorageAccessError(CuratorError):
    """Raised when the storage backend fails with an I/O or permission error."""

    kind = ErrorKind.STORAGE
