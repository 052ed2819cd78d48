"""Typer CLI entry point for m2-curator."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from m2_curator.config import CuratorConfig, DatabaseConfig
from m2_curator.db import ArtifactIndex, create_engine_from_config, create_sqlite_engine, init_db
from m2_curator.exceptions import CuratorError
from m2_curator.layout import is_metadata_file
from m2_curator.metadata_tools import MetadataUpdater
from m2_curator.models import MetadataUpdateResult
from m2_curator.proxies import ProxyRegistry
from m2_curator.purge import RepositoryPurgeConsumer
from m2_curator.repository import ManagedRepository
from m2_curator.scanner import iter_artifact_paths
from m2_curator.storage import normalize_path
from m2_curator.versions import is_snapshot

app = typer.Typer(add_completion=False, help="Maintain maven-metadata.xml and purge old snapshots.")
console = Console()

ConfigOption = Annotated[
    Path,
    typer.Option("--config", envvar="M2C_CONFIG", help="Repository configuration (JSON)."),
]
RepoOption = Annotated[str, typer.Option("--repo", "-r", help="Managed repository id.")]


@app.callback()
def _setup(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _open(config_path: Path, repo_id: str) -> tuple[CuratorConfig, ManagedRepository]:
    config = CuratorConfig.load(config_path)
    return config, ManagedRepository.from_config(config.managed_repository(repo_id))


def _results_table(title: str, results: list[MetadataUpdateResult]) -> Table:
    table = Table(title=title)
    table.add_column("Metadata")
    table.add_column("Written")
    table.add_column("Note", style="dim")
    for r in results:
        table.add_row(r.path, "[green]yes[/green]" if r.written else "[yellow]no[/yellow]", r.message or "")
    return table


@app.command("update-metadata")
def update_metadata(
    path: Annotated[str, typer.Argument(help="Artifact or maven-metadata.xml path inside the repository.")],
    repo: RepoOption,
    config: ConfigOption = Path("m2-curator.json"),
) -> None:
    """Rebuild maven-metadata.xml for PATH (project level, plus version level for snapshots)."""
    try:
        cfg, repository = _open(config, repo)
        updater = MetadataUpdater(proxies=ProxyRegistry(cfg))
        logical = normalize_path(path)

        results: list[MetadataUpdateResult] = []
        name = logical.rsplit("/", 1)[-1]
        if is_metadata_file(name):
            results.append(updater.update_metadata_path(repository, logical))
        else:
            coordinate = repository.layout.to_coordinate(logical)
            if coordinate.version and is_snapshot(coordinate.version):
                results.append(updater.update_version_metadata(repository, coordinate))
            results.append(updater.update_project_metadata(repository, coordinate))

        console.print(_results_table(f"Metadata updates in {repository.id}", results))
    except (CuratorError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from None


@app.command()
def purge(
    repo: RepoOption,
    paths: Annotated[
        Optional[list[str]],
        typer.Argument(help="Trigger artifact paths. Defaults to every artifact in the repository."),
    ] = None,
    config: ConfigOption = Path("m2-curator.json"),
) -> None:
    """Apply the repository's retention policy, triggered by each artifact path."""
    try:
        cfg, repository = _open(config, repo)
        policy = cfg.managed_repository(repo).retention_policy()
        engine = create_engine_from_config(DatabaseConfig.from_env())
        if engine is not None:
            init_db(engine)
        consumer = RepositoryPurgeConsumer(
            repository,
            policy,
            MetadataUpdater(proxies=ProxyRegistry(cfg)),
            index=ArtifactIndex(engine) if engine is not None else None,
            release_repositories=[
                ManagedRepository.from_config(r) for r in cfg.managed_repositories if r.releases
            ],
        )

        triggers = [normalize_path(p) for p in paths] if paths else list(
            iter_artifact_paths(repository.storage, repository.layout)
        )
        deleted = 0
        stale = 0
        for trigger in triggers:
            if not repository.storage.exists(trigger):
                continue
            report = consumer.process(trigger)
            deleted += len(report.deleted_files)
            for line in report.deleted_files:
                console.print(f"[red]deleted[/red] {line}")
            if report.metadata_stale:
                stale += 1
                for err in report.errors:
                    console.print(f"[bold yellow]Stale metadata:[/bold yellow] {err}")

        console.print(f"[green]Purged[/green] {deleted} file(s) from [bold]{repository.id}[/bold].")
        if stale:
            raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except (CuratorError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from None


@app.command()
def scan(
    repo: RepoOption,
    config: ConfigOption = Path("m2-curator.json"),
    limit: Annotated[int, typer.Option("--limit", help="Max rows to print.")] = 200,
) -> None:
    """List the artifacts of a managed repository."""
    try:
        _, repository = _open(config, repo)
        table = Table(title=f"Artifacts in {repository.id}")
        table.add_column("#", style="dim", width=6)
        table.add_column("Coordinate")
        table.add_column("Path", style="dim")

        count = 0
        for path in iter_artifact_paths(repository.storage, repository.layout):
            count += 1
            if count > limit:
                continue
            try:
                key = repository.layout.to_coordinate(path).to_key()
            except CuratorError:
                key = "[yellow]unparseable[/yellow]"
            table.add_row(str(count), key, path)

        console.print(table)
        if count > limit:
            console.print(f"[dim]Truncated: showing {limit}/{count}[/dim]")
    except (CuratorError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from None


@app.command()
def index(
    repo: RepoOption,
    config: ConfigOption = Path("m2-curator.json"),
    db: Annotated[Path, typer.Option("--db", help="SQLite db path.")] = Path("artifacts.db"),
) -> None:
    """Record every artifact of a managed repository in the SQLite side index."""
    try:
        _, repository = _open(config, repo)
        engine = create_sqlite_engine(db)
        init_db(engine)
        artifact_index = ArtifactIndex(engine)

        count = 0
        for path in iter_artifact_paths(repository.storage, repository.layout):
            try:
                coordinate = repository.layout.to_coordinate(path)
            except CuratorError as exc:
                console.print(f"[bold red]Error:[/bold red] {exc}")
                continue
            artifact_index.add(repository.id, path, coordinate, repository.storage.last_modified(path))
            count += 1

        console.print(f"[green]Indexed[/green] {count} artifact(s) into [bold]{db}[/bold].")
    except (CuratorError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from None


def main() -> None:
    """Console-script entry point."""
    app()
