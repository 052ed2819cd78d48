from __future__ import annotations

import json
from pathlib import Path

import pytest

from m2_curator.config import CuratorConfig, ProxyConnectorConfig
from m2_curator.layout import LayoutKind
from m2_curator.proxies import ProxyRegistry
from m2_curator.repository import ManagedRepository
from m2_curator.storage import FilesystemStorage


def _write_config(tmp_path: Path) -> Path:
    path = tmp_path / "m2-curator.json"
    path.write_text(
        json.dumps(
            {
                "managed_repositories": [
                    {"id": "internal", "location": str(tmp_path / "internal"), "snapshots": True},
                    {
                        "id": "snapshots",
                        "location": str(tmp_path / "snapshots"),
                        "releases": False,
                        "snapshots": True,
                        "days_older": 30,
                        "retention_count": 3,
                        "delete_released_snapshots": True,
                    },
                ],
                "proxy_connectors": [
                    {"source_repo_id": "internal", "target_repo_id": "central"},
                    {"source_repo_id": "internal", "target_repo_id": "apache"},
                    {"source_repo_id": "internal", "target_repo_id": "central"},
                ],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_load_config(tmp_path: Path) -> None:
    config = CuratorConfig.load(_write_config(tmp_path))

    internal = config.managed_repository("internal")
    assert internal.layout is LayoutKind.MAVEN2
    assert internal.releases and internal.snapshots

    policy = config.managed_repository("snapshots").retention_policy()
    assert (policy.days_older, policy.retention_count, policy.delete_released_snapshots) == (30, 3, True)

    with pytest.raises(ValueError):
        config.managed_repository("missing")


def test_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("M2C_CONFIG", str(_write_config(tmp_path)))
    assert [r.id for r in CuratorConfig.from_env().managed_repositories] == ["internal", "snapshots"]


def test_load_rejects_missing_and_invalid(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        CuratorConfig.load(tmp_path / "nope.json")

    bad = tmp_path / "bad.json"
    bad.write_text('{"managed_repositories": [{"id": "x", "location": "/tmp", "retention_count": 0}]}', encoding="utf-8")
    with pytest.raises(ValueError):
        CuratorConfig.load(bad)


def test_managed_repository_from_config(tmp_path: Path) -> None:
    config = CuratorConfig.load(_write_config(tmp_path))

    repo = ManagedRepository.from_config(config.managed_repository("snapshots"))

    assert repo.id == "snapshots"
    assert isinstance(repo.storage, FilesystemStorage)
    assert repo.storage.root == (tmp_path / "snapshots").resolve()
    assert not repo.releases
    assert repo.lock_key("a/b") == "snapshots:a/b"


def test_proxy_registry(tmp_path: Path) -> None:
    registry = ProxyRegistry(CuratorConfig.load(_write_config(tmp_path)))

    assert registry.proxies_for("internal") == ("central", "apache")
    assert registry.proxies_for("snapshots") == ()

    registry.refresh(CuratorConfig(proxy_connectors=[ProxyConnectorConfig(source_repo_id="snapshots", target_repo_id="x")]))
    assert registry.proxies_for("internal") == ()
    assert registry.proxies_for("snapshots") == ("x",)
