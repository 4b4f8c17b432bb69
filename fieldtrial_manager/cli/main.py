"""
Command line interface for the field trial manager.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from fieldtrial_manager.config import Settings, load_settings
from fieldtrial_manager.models import (
    CacheClearSpec,
    EntityType,
    OperationStatus,
    ReindexRequest,
)
from fieldtrial_manager.workflow import manager as manager_workflow
from fieldtrial_manager.workflow.manager import ManagerRequest, ManagerState

app = typer.Typer(
    name="Field Trial Manager",
    help="Reindex field trial data and manage the study cache",
)
cache_app = typer.Typer(help="Inspect and evict cached studies.")
app.add_typer(cache_app, name="cache")

_FAILED_STATUSES = {OperationStatus.FAILED, OperationStatus.FAILED_TO_START}

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    exists=False,
    help="Optional YAML settings override.",
)


def _settings(config_path: Optional[Path], **overrides: Any) -> Settings:
    cleaned = {key: value for key, value in overrides.items() if value is not None}
    return load_settings(config_path, overrides=cleaned or None)


def _report(state: ManagerState, stage: str) -> None:
    payload: Dict[str, Any] = {
        "status": {name: status.value for name, status in state.stage_status.items()},
        "results": getattr(state.job, "results", {}),
        "errors": [error.to_dict() for error in getattr(state.job, "errors", [])],
    }
    typer.echo(json.dumps(payload, indent=2, default=str))
    status = state.stage_status.get(stage)
    if status in _FAILED_STATUSES:
        raise typer.Exit(code=1)


@app.command()
def reindex(
    types: Optional[List[str]] = typer.Option(
        None,
        "--type",
        "-t",
        help="Entity type to reindex (repeatable): "
        + ", ".join(entity.value for entity in EntityType),
    ),
    reindex_all: bool = typer.Option(False, "--all", help="Reindex every entity type."),
    clear_data: bool = typer.Option(
        False,
        "--clear-data",
        help="Replace the existing index entries instead of updating them.",
    ),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """Push entity collections into the search index."""

    try:
        reindex_request = ReindexRequest.for_types(types or [], update=not clear_data)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if reindex_all:
        reindex_request.reindex_all = True
    if reindex_request.is_empty:
        raise typer.BadParameter("Provide at least one --type or --all.")

    settings = _settings(config_path)
    state = manager_workflow.run_manager(ManagerRequest(reindex=reindex_request), settings=settings)
    _report(state, "reindex")


@cache_app.command("list")
def cache_list(
    full_path: bool = typer.Option(False, "--full-path", help="Show absolute file paths."),
    cache_root: Optional[Path] = typer.Option(None, "--cache-root", help="Study cache directory."),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """List the cached studies with their dates and sizes."""

    settings = _settings(config_path, study_cache_root=cache_root)
    state = manager_workflow.run_manager(
        ManagerRequest(list_cache=True, list_full_path=full_path),
        settings=settings,
    )
    _report(state, "cache")


@cache_app.command("clear")
def cache_clear(
    names: List[str] = typer.Argument(..., help="Cache entries to remove, or '*' for all."),
    cache_root: Optional[Path] = typer.Option(None, "--cache-root", help="Study cache directory."),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """Remove cached studies by name."""

    spec = CacheClearSpec.parse(names)
    if spec is None:
        raise typer.BadParameter("Provide at least one cache entry name.")
    settings = _settings(config_path, study_cache_root=cache_root)
    state = manager_workflow.run_manager(ManagerRequest(clear_cache=spec), settings=settings)
    _report(state, "cache")


@app.command()
def packages(
    output_root: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory for the generated data packages.",
    ),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """Regenerate the Frictionless Data package of every study."""

    settings = _settings(config_path, fd_package_root=output_root)
    state = manager_workflow.run_manager(ManagerRequest(generate_packages=True), settings=settings)
    _report(state, "packages")


@app.command("remove-plots")
def remove_plots(
    study_id: str = typer.Argument(..., help="Study whose plots should be removed."),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """Remove all of the plots stored for a study."""

    settings = _settings(config_path)
    state = manager_workflow.run_manager(
        ManagerRequest(remove_plots_study_id=study_id),
        settings=settings,
    )
    _report(state, "plots")


@app.command()
def run(
    types: Optional[List[str]] = typer.Option(None, "--type", "-t", help="Entity type to reindex."),
    reindex_all: bool = typer.Option(False, "--all", help="Reindex every entity type."),
    clear_data: bool = typer.Option(False, "--clear-data", help="Replace index entries."),
    list_cache: bool = typer.Option(False, "--list-cache", help="List cached studies."),
    clear_cache: Optional[str] = typer.Option(
        None,
        "--clear-cache",
        help="Space separated cache entries to remove, or '*'.",
    ),
    generate_packages: bool = typer.Option(
        False,
        "--packages",
        help="Regenerate every study data package.",
    ),
    remove_plots_for: Optional[str] = typer.Option(
        None,
        "--remove-plots",
        help="Remove the plots of the given study.",
    ),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """Run a combined management job."""

    try:
        reindex_request = ReindexRequest.for_types(types or [], update=not clear_data)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    reindex_request.reindex_all = reindex_all

    request = ManagerRequest(
        reindex=reindex_request,
        list_cache=list_cache,
        clear_cache=CacheClearSpec.parse(clear_cache),
        generate_packages=generate_packages,
        remove_plots_study_id=remove_plots_for,
    )
    settings = _settings(config_path)
    state = manager_workflow.run_manager(request, settings=settings)
    payload = {
        "job_status": state.job.status.value if hasattr(state.job, "status") else None,
        "status": {name: status.value for name, status in state.stage_status.items()},
    }
    typer.echo(json.dumps(payload, indent=2))


@app.command("settings")
def show_settings(config_path: Optional[Path] = ConfigOption) -> None:
    """Print resolved settings for debugging."""
    settings = load_settings(config_path)
    for key, value in settings.model_dump().items():
        typer.echo(f"{key}: {value}")


def main_cli() -> None:
    """Allow `python -m fieldtrial_manager` execution."""
    app()


if __name__ == "__main__":
    main_cli()
