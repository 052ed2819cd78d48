from __future__ import annotations

from collections.abc import Iterator

from m2_curator.layout import Maven2Layout
from m2_curator.storage import RepositoryStorage


def iter_artifact_paths(storage: RepositoryStorage, layout: Maven2Layout, root: str = "") -> Iterator[str]:
    """Walk a repository and yield artifact paths.

    Metadata, checksum and signature files and dot files are skipped.
    Directories are visited in name order so the output is stable.

    Args:
        storage: Repository storage to walk.
        layout: Layout deciding which files are artifacts.
        root: Repository-relative directory to start from.
    """
    pending = [root]
    while pending:
        directory = pending.pop()
        children = storage.list(directory)
        for asset in children:
            if not asset.container and layout.is_artifact_file(asset.path):
                yield asset.path
        # Reverse so that pop() visits sub-directories in name order.
        pending.extend(a.path for a in reversed(children) if a.container and not a.name.startswith("."))
