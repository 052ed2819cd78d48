"""Asset storage abstraction for managed repositories.

The curator never touches the filesystem directly: every read, write, listing
and deletion goes through a `RepositoryStorage`. Paths are repository
relative, `/`-separated strings (`org/acme/demo/1.0/demo-1.0.jar`).
"""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable

from m2_curator.exceptions import ContentNotFoundError, StorageAccessError


def normalize_path(path: str) -> str:
    """Normalize a logical path: forward slashes, no leading slash, no `..`."""
    parts = [p for p in path.replace("\\", "/").split("/") if p and p != "."]
    if ".." in parts:
        raise StorageAccessError(f"Path escapes the repository root: {path}")
    return "/".join(parts)


@dataclass(frozen=True)
class StorageAsset:
    """A file or container (directory) inside a repository."""

    path: str
    container: bool

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def parent_path(self) -> str:
        parent = str(PurePosixPath(self.path).parent)
        return "" if parent == "." else parent


@runtime_checkable
class RepositoryStorage(Protocol):
    """Operations the curator needs from a repository backend.

    Each single call is expected to be atomic; nothing is transactional
    across calls.
    """

    def exists(self, path: str) -> bool: ...

    def is_container(self, path: str) -> bool: ...

    def list(self, path: str) -> list[StorageAsset]: ...

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, data: bytes, truncate: bool = True) -> None: ...

    def delete(self, path: str) -> None: ...

    def move(self, src: str, dst: str) -> None: ...

    def copy(self, src: str, dst: str) -> None: ...

    def get_parent(self, path: str) -> StorageAsset: ...

    def last_modified(self, path: str) -> datetime: ...


class FilesystemStorage:
    """`RepositoryStorage` backed by a local directory tree."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def __repr__(self) -> str:
        return f"FilesystemStorage({str(self.root)!r})"

    def _resolve(self, path: str) -> Path:
        norm = normalize_path(path)
        return self.root / norm if norm else self.root

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def is_container(self, path: str) -> bool:
        return self._resolve(path).is_dir()

    def list(self, path: str) -> list[StorageAsset]:
        target = self._resolve(path)
        base = normalize_path(path)
        try:
            entries = sorted(target.iterdir(), key=lambda p: p.name)
        except FileNotFoundError as exc:
            raise ContentNotFoundError(f"No such container: {path}") from exc
        except NotADirectoryError as exc:
            raise StorageAccessError(f"Not a container: {path}") from exc
        except OSError as exc:
            raise StorageAccessError(f"Unable to list {path}: {exc}") from exc
        return [
            StorageAsset(path=f"{base}/{p.name}" if base else p.name, container=p.is_dir())
            for p in entries
        ]

    def read(self, path: str) -> bytes:
        try:
            return self._resolve(path).read_bytes()
        except FileNotFoundError as exc:
            raise ContentNotFoundError(f"No such asset: {path}") from exc
        except OSError as exc:
            raise StorageAccessError(f"Unable to read {path}: {exc}") from exc

    def write(self, path: str, data: bytes, truncate: bool = True) -> None:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if not truncate:
                with target.open("ab") as fh:
                    fh.write(data)
                return
            # Write to a sibling temp file and swap it in, so readers never see half a file.
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageAccessError(f"Unable to write {path}: {exc}") from exc

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            if target.is_dir():
                shutil.rmtree(target)
            else:
                target.unlink()
        except FileNotFoundError as exc:
            raise ContentNotFoundError(f"No such asset: {path}") from exc
        except OSError as exc:
            raise StorageAccessError(f"Unable to delete {path}: {exc}") from exc

    def move(self, src: str, dst: str) -> None:
        source = self._resolve(src)
        target = self._resolve(dst)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(target))
        except FileNotFoundError as exc:
            raise ContentNotFoundError(f"No such asset: {src}") from exc
        except OSError as exc:
            raise StorageAccessError(f"Unable to move {src} to {dst}: {exc}") from exc

    def copy(self, src: str, dst: str) -> None:
        source = self._resolve(src)
        target = self._resolve(dst)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if source.is_dir():
                shutil.copytree(source, target, dirs_exist_ok=True)
            else:
                shutil.copy2(source, target)
        except FileNotFoundError as exc:
            raise ContentNotFoundError(f"No such asset: {src}") from exc
        except OSError as exc:
            raise StorageAccessError(f"Unable to copy {src} to {dst}: {exc}") from exc

    def get_parent(self, path: str) -> StorageAsset:
        parent = StorageAsset(path=normalize_path(path), container=False).parent_path
        return StorageAsset(path=parent, container=True)

    def last_modified(self, path: str) -> datetime:
        try:
            mtime = self._resolve(path).stat().st_mtime
        except FileNotFoundError as exc:
            raise ContentNotFoundError(f"No such asset: {path}") from exc
        except OSError as exc:
            raise StorageAccessError(f"Unable to stat {path}: {exc}") from exc
        return datetime.fromtimestamp(mtime, tz=timezone.utc)
