"""Managed repository -> proxied remote repository ids."""

from __future__ import annotations

import threading

from m2_curator.config import CuratorConfig


class ProxyRegistry:
    """Read-through cache of proxy connector ids per managed repository.

    Rebuilt only through `refresh`, which the configuration layer calls when
    proxy connectors change.
    """

    def __init__(self, config: CuratorConfig | None = None) -> None:
        self._lock = threading.Lock()
        self._proxies: dict[str, tuple[str, ...]] = {}
        if config is not None:
            self.refresh(config)

    def refresh(self, config: CuratorConfig) -> None:
        proxies: dict[str, list[str]] = {}
        for connector in config.proxy_connectors:
            targets = proxies.setdefault(connector.source_repo_id, [])
            if connector.target_repo_id not in targets:
                targets.append(connector.target_repo_id)
        with self._lock:
            self._proxies = {k: tuple(v) for k, v in proxies.items()}

    def proxies_for(self, repo_id: str) -> tuple[str, ...]:
        """Proxy ids for a managed repository, in configuration order."""
        with self._lock:
            return self._proxies.get(repo_id, ())
