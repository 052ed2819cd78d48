from __future__ import annotations

import hashlib
from datetime import timezone
from pathlib import Path

import pytest

from conftest import add_artifact, write_file
from m2_curator.checksums import ChecksumAlgorithm, fix_checksums, is_companion_file
from m2_curator.exceptions import ContentNotFoundError, LayoutError, StorageAccessError
from m2_curator.layout import LayoutKind, Maven2Layout, layout_for
from m2_curator.models import ArtifactCoordinate
from m2_curator.scanner import iter_artifact_paths
from m2_curator.storage import FilesystemStorage, normalize_path

LAYOUT = Maven2Layout()


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        (
            "org/apache/maven/plugins/maven-plugin-plugin/2.3/maven-plugin-plugin-2.3.jar",
            ("org.apache.maven.plugins", "maven-plugin-plugin", "2.3", None, "jar"),
        ),
        (
            "org/jruby/plugins/jruby-rake-plugin/1.0RC1-SNAPSHOT/jruby-rake-plugin-1.0RC1-20070504.153317-1.pom",
            ("org.jruby.plugins", "jruby-rake-plugin", "1.0RC1-20070504.153317-1", None, "pom"),
        ),
        (
            "org/acme/demo/1.0-SNAPSHOT/demo-1.0-SNAPSHOT-sources.jar",
            ("org.acme", "demo", "1.0-SNAPSHOT", "sources", "jar"),
        ),
        (
            "org/acme/demo/1.0-SNAPSHOT/demo-1.0-20070101.000000-2-javadoc.jar",
            ("org.acme", "demo", "1.0-20070101.000000-2", "javadoc", "jar"),
        ),
        ("org/acme/dist/2.0/dist-2.0-bin.tar.gz", ("org.acme", "dist", "2.0", "bin", "tar.gz")),
    ],
)
def test_to_coordinate(path: str, expected: tuple) -> None:
    c = LAYOUT.to_coordinate(path)
    assert (c.group_id, c.artifact_id, c.version, c.classifier, c.type) == expected


@pytest.mark.parametrize(
    "path",
    [
        "demo/1.0/demo-1.0.jar",
        "org/acme/demo/1.0/other-1.0.jar",
        "org/acme/demo/1.0/demo-2.0.jar",
        "org/acme/demo/1.0/demo-1.0-.jar",
    ],
)
def test_to_coordinate_rejects_bad_paths(path: str) -> None:
    with pytest.raises(LayoutError):
        LAYOUT.to_coordinate(path)


def test_to_path_and_metadata_paths() -> None:
    c = ArtifactCoordinate(group_id="org.acme", artifact_id="demo", version="1.0-20070101.000000-2", type="jar")
    assert LAYOUT.to_path(c) == "org/acme/demo/1.0-SNAPSHOT/demo-1.0-20070101.000000-2.jar"
    assert LAYOUT.metadata_path(c) == "org/acme/demo/1.0-SNAPSHOT/maven-metadata.xml"
    assert LAYOUT.metadata_path(c.to_project()) == "org/acme/demo/maven-metadata.xml"


def test_is_artifact_file() -> None:
    assert LAYOUT.is_artifact_file("org/acme/demo/1.0/demo-1.0.jar")
    assert not LAYOUT.is_artifact_file("org/acme/demo/1.0/demo-1.0.jar.sha1")
    assert not LAYOUT.is_artifact_file("org/acme/demo/1.0/demo-1.0.jar.asc")
    assert not LAYOUT.is_artifact_file("org/acme/demo/maven-metadata.xml")
    assert not LAYOUT.is_artifact_file("org/acme/demo/maven-metadata-central.xml")
    assert not LAYOUT.is_artifact_file(".index/nexus-maven-repository-index.gz")


def test_layout_for() -> None:
    assert isinstance(layout_for("default"), Maven2Layout)
    assert layout_for(LayoutKind.MAVEN2).kind is LayoutKind.MAVEN2
    with pytest.raises(ValueError):
        layout_for("legacy")


def test_versions_of_and_artifact_stream(tmp_path: Path) -> None:
    add_artifact(tmp_path, "org.acme", "demo", "1.0")
    add_artifact(tmp_path, "org.acme", "demo", "1.1", extensions=("pom",))
    write_file(tmp_path, "org/acme/demo/2.0/readme.txt.sha1", "x")
    write_file(tmp_path, "org/acme/demo/maven-metadata.xml", "<metadata/>")
    storage = FilesystemStorage(tmp_path)
    project = ArtifactCoordinate(group_id="org.acme", artifact_id="demo")

    assert LAYOUT.versions_of(storage, project) == {"1.0", "1.1"}

    stream = list(LAYOUT.artifact_stream_of(storage, project.with_version("1.0")))
    assert [p for p, _ in stream] == ["org/acme/demo/1.0/demo-1.0.jar", "org/acme/demo/1.0/demo-1.0.pom"]
    assert [c.type for _, c in stream] == ["jar", "pom"]
    assert list(LAYOUT.artifact_stream_of(storage, project.with_version("3.0"))) == []


def test_scanner_walks_in_name_order(tmp_path: Path) -> None:
    add_artifact(tmp_path, "org.acme", "zeta", "1.0", extensions=("jar",))
    add_artifact(tmp_path, "org.acme", "alpha", "1.0", extensions=("jar",))
    write_file(tmp_path, ".index/timestamp", "1")
    write_file(tmp_path, "org/acme/alpha/maven-metadata.xml", "<metadata/>")

    paths = list(iter_artifact_paths(FilesystemStorage(tmp_path), LAYOUT))

    assert paths == ["org/acme/alpha/1.0/alpha-1.0.jar", "org/acme/zeta/1.0/zeta-1.0.jar"]


def test_storage_basics(tmp_path: Path) -> None:
    storage = FilesystemStorage(tmp_path)
    storage.write("a/b/c.txt", b"hello")

    assert storage.read("a/b/c.txt") == b"hello"
    assert storage.is_container("a/b")
    assert [a.name for a in storage.list("a/b")] == ["c.txt"]
    assert storage.get_parent("a/b/c.txt").path == "a/b"
    assert storage.last_modified("a/b/c.txt").tzinfo == timezone.utc

    storage.copy("a/b/c.txt", "a/d.txt")
    storage.move("a/d.txt", "e.txt")
    assert storage.read("e.txt") == b"hello"
    assert not storage.exists("a/d.txt")

    storage.delete("a")
    assert not storage.exists("a/b/c.txt")
    with pytest.raises(ContentNotFoundError):
        storage.read("a/b/c.txt")
    with pytest.raises(ContentNotFoundError):
        storage.delete("a")


def test_normalize_path_rejects_escape() -> None:
    assert normalize_path("/org\\acme//demo/") == "org/acme/demo"
    with pytest.raises(StorageAccessError):
        normalize_path("org/../../etc/passwd")


def test_fix_checksums(tmp_path: Path) -> None:
    storage = FilesystemStorage(tmp_path)
    storage.write("g/a/maven-metadata.xml", b"<metadata/>")

    written = fix_checksums(storage, "g/a/maven-metadata.xml", [ChecksumAlgorithm.SHA1, ChecksumAlgorithm.MD5])

    assert written == ["g/a/maven-metadata.xml.sha1", "g/a/maven-metadata.xml.md5"]
    assert storage.read("g/a/maven-metadata.xml.sha1").decode() == hashlib.sha1(b"<metadata/>").hexdigest()
    assert is_companion_file("x.jar.sha256")
    assert not is_companion_file("x.jar")
