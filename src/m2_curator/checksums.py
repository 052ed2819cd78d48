"""Checksum side files (`.sha256`, `.sha1`, `.md5`) and companion file detection."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from enum import Enum

from m2_curator.storage import RepositoryStorage


class ChecksumAlgorithm(str, Enum):
    """Supported digests; the value is the side-file extension (without the dot)."""

    SHA256 = "sha256"
    SHA1 = "sha1"
    MD5 = "md5"

    @property
    def extension(self) -> str:
        return "." + self.value


DEFAULT_ALGORITHMS: tuple[ChecksumAlgorithm, ...] = (
    ChecksumAlgorithm.SHA256,
    ChecksumAlgorithm.SHA1,
    ChecksumAlgorithm.MD5,
)

# Checksums and signatures that live next to a payload file and share its name.
COMPANION_EXTENSIONS: tuple[str, ...] = (".sha512", ".sha256", ".sha1", ".md5", ".asc")


def is_companion_file(name: str) -> bool:
    return name.endswith(COMPANION_EXTENSIONS)


def digest(data: bytes, algorithm: ChecksumAlgorithm) -> str:
    """Return the lowercase hex digest of `data`."""
    return hashlib.new(algorithm.value, data).hexdigest()


def fix_checksums(
    storage: RepositoryStorage,
    path: str,
    algorithms: Iterable[ChecksumAlgorithm] = DEFAULT_ALGORITHMS,
) -> list[str]:
    """(Re)write one checksum side file per algorithm for the asset at `path`.

    Returns:
        The paths of the checksum files written.
    """
    data = storage.read(path)
    written: list[str] = []
    for algorithm in algorithms:
        side = path + algorithm.extension
        storage.write(side, digest(data, algorithm).encode("ascii"))
        written.append(side)
    return written
