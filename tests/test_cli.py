from __future__ import annotations

import json
from pathlib import Path

import pytest
from sqlmodel import Session, select
from typer.testing import CliRunner

from conftest import JRUBY_DIR, add_jruby
from m2_curator.cli import app
from m2_curator.db import create_sqlite_engine
from m2_curator.db_models import ArtifactRecord

runner = CliRunner()


@pytest.fixture
def config_path(tmp_path: Path, repo_root: Path) -> Path:
    add_jruby(repo_root)
    path = tmp_path / "m2-curator.json"
    path.write_text(
        json.dumps(
            {
                "managed_repositories": [
                    {
                        "id": "snapshots",
                        "location": str(repo_root),
                        "releases": False,
                        "snapshots": True,
                        "retention_count": 2,
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


def test_update_metadata_command(config_path: Path, repo_root: Path) -> None:
    trigger = f"{JRUBY_DIR}/jruby-rake-plugin-1.0RC1-20070506.090132-4.pom"

    result = runner.invoke(app, ["update-metadata", trigger, "--repo", "snapshots", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert (repo_root / JRUBY_DIR / "maven-metadata.xml").exists()
    assert (repo_root / "org/jruby/plugins/jruby-rake-plugin/maven-metadata.xml").exists()


def test_purge_command(config_path: Path, repo_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("M2C_DB_TYPE", "none")

    result = runner.invoke(app, ["purge", "--repo", "snapshots", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "Purged" in result.output
    jars = sorted(p.name for p in (repo_root / JRUBY_DIR).glob("*.jar"))
    assert jars == [
        "jruby-rake-plugin-1.0RC1-20070505.090015-3.jar",
        "jruby-rake-plugin-1.0RC1-20070506.090132-4.jar",
    ]


def test_scan_and_index_commands(config_path: Path, tmp_path: Path) -> None:
    scanned = runner.invoke(app, ["scan", "--repo", "snapshots", "--config", str(config_path)])
    assert scanned.exit_code == 0, scanned.output
    assert "Artifacts in snapshots" in scanned.output

    db = tmp_path / "artifacts.db"
    indexed = runner.invoke(app, ["index", "--repo", "snapshots", "--config", str(config_path), "--db", str(db)])
    assert indexed.exit_code == 0, indexed.output

    with Session(create_sqlite_engine(db)) as session:
        rows = session.exec(select(ArtifactRecord)).all()
    assert len(rows) == 8
    assert {r.project_version for r in rows} == {"1.0RC1-SNAPSHOT"}


def test_unknown_repository_is_an_error(config_path: Path) -> None:
    result = runner.invoke(app, ["scan", "--repo", "missing", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Error:" in result.output
