"""Shared fixtures: small Maven repositories built on disk under tmp_path."""
from __future__ import annotations

import hashlib
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from m2_curator.metadata_tools import MetadataUpdater
from m2_curator.repository import ManagedRepository
from m2_curator.storage import FilesystemStorage

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def write_file(root: Path, rel: str, content: str | bytes = "") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode("utf-8") if isinstance(content, str) else content
    path.write_bytes(data)
    return path


def add_artifact(
    root: Path,
    group_id: str,
    artifact_id: str,
    version: str,
    file_version: str | None = None,
    extensions: tuple[str, ...] = ("jar", "pom"),
    classifier: str | None = None,
    checksums: bool = True,
) -> list[str]:
    """Create artifact files (plus .sha1/.md5 companions) and return their paths."""
    directory = f"{group_id.replace('.', '/')}/{artifact_id}/{version}"
    name = f"{artifact_id}-{file_version or version}"
    if classifier:
        name += f"-{classifier}"
    created = []
    for ext in extensions:
        rel = f"{directory}/{name}.{ext}"
        payload = f"{rel}\n".encode("utf-8")
        write_file(root, rel, payload)
        created.append(rel)
        if checksums:
            write_file(root, rel + ".sha1", hashlib.sha1(payload).hexdigest())
            write_file(root, rel + ".md5", hashlib.md5(payload).hexdigest())
    return created


def set_age(root: Path, rel: str, age: timedelta, now: datetime = NOW) -> None:
    """Set the mtime of a file (and its companions) to `now - age`."""
    stamp = (now - age).timestamp()
    for path in root.glob(rel + "*"):
        os.utime(path, (stamp, stamp))


@pytest.fixture
def repo_root(tmp_path: Path) -> Path:
    root = tmp_path / "snapshots"
    root.mkdir()
    return root


@pytest.fixture
def repository(repo_root: Path) -> ManagedRepository:
    return ManagedRepository(id="snapshots", storage=FilesystemStorage(repo_root), releases=False)


@pytest.fixture
def updater() -> MetadataUpdater:
    return MetadataUpdater()


JRUBY_GROUP = "org.jruby.plugins"
JRUBY_ARTIFACT = "jruby-rake-plugin"
JRUBY_DIR = "org/jruby/plugins/jruby-rake-plugin/1.0RC1-SNAPSHOT"
JRUBY_BUILDS = ["20070504.153317-1", "20070504.160758-2", "20070505.090015-3", "20070506.090132-4"]


def add_jruby(root: Path) -> None:
    """Four timestamped builds of jruby-rake-plugin 1.0RC1-SNAPSHOT, jar + pom each."""
    for build in JRUBY_BUILDS:
        add_artifact(root, JRUBY_GROUP, JRUBY_ARTIFACT, "1.0RC1-SNAPSHOT", f"1.0RC1-{build}")
