"""Dispatch a management request to the reindex, cache and package services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

from fieldtrial_manager.config import Settings, load_settings
from fieldtrial_manager.models import (
    ArtifactBatchResult,
    CacheClearResult,
    CacheClearSpec,
    CacheListing,
    EntityType,
    Job,
    OperationStatus,
    ReindexReport,
    ReindexRequest,
    ServiceJob,
)
from fieldtrial_manager.services.artifacts import ArtifactBatchGenerator
from fieldtrial_manager.services.cache import CacheManager
from fieldtrial_manager.services.document_store import (
    JsonPlotStore,
    JsonStudyRepository,
    build_repositories,
)
from fieldtrial_manager.services.interfaces import (
    ArtifactWriter,
    EntityRepository,
    PlotRemover,
    SearchIndexClient,
    StudyRepository,
)
from fieldtrial_manager.services.logging import configure_logging, console_kwargs
from fieldtrial_manager.services.packages import FrictionlessPackageWriter
from fieldtrial_manager.services.reindex import ReindexCoordinator
from fieldtrial_manager.services.search_index import JsonLinesIndexClient

logger = logging.getLogger(__name__)

CACHED_FILES_RESULT = "Cached Files"
CACHE_CLEAR_RESULT = "Cleared Cache"
REINDEX_RESULT = "Reindexing"
PACKAGES_RESULT = "Data Packages"
PLOTS_RESULT = "Removed Plots"

CANONICAL_STAGES: List[str] = ["reindex", "cache", "packages", "plots"]


@dataclass
class ManagerRequest:
    """Everything a single management job may ask for."""

    reindex: ReindexRequest = field(default_factory=ReindexRequest)
    list_cache: bool = False
    list_full_path: bool = False
    clear_cache: Optional[CacheClearSpec] = None
    generate_packages: bool = False
    remove_plots_study_id: Optional[str] = None


@dataclass
class Collaborators:
    """External systems the services talk to."""

    repositories: Mapping[EntityType, EntityRepository]
    index_client: SearchIndexClient
    studies: StudyRepository
    writer: Optional[ArtifactWriter] = None
    plots: Optional[PlotRemover] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Collaborators":
        """File-backed collaborators rooted in the configured directories."""
        writer = (
            FrictionlessPackageWriter(settings.fd_package_root)
            if settings.fd_package_root is not None
            else None
        )
        return cls(
            repositories=build_repositories(settings),
            index_client=JsonLinesIndexClient(settings.index_root),
            studies=JsonStudyRepository(settings.data_root),
            writer=writer,
            plots=JsonPlotStore(settings.data_root),
        )


@dataclass
class ManagerState:
    job: Job
    reindex: Optional[ReindexReport] = None
    cache_listing: Optional[CacheListing] = None
    cache_clear: Optional[CacheClearResult] = None
    packages: Optional[ArtifactBatchResult] = None
    plots_status: Optional[OperationStatus] = None
    stage_status: Dict[str, OperationStatus] = field(default_factory=dict)


StageHandler = Callable[[ManagerRequest, Settings, Collaborators, ManagerState], None]


def run_manager(
    request: ManagerRequest,
    *,
    settings: Settings | None = None,
    collaborators: Collaborators | None = None,
    job: Job | None = None,
) -> ManagerState:
    """Run every part of ``request`` independently and record the statuses.

    Each stage that applies sets its own status on the job, so the job ends up
    holding the status of the last stage that ran; the per-stage statuses are
    kept on the returned state.
    """

    resolved_settings = settings or load_settings()
    _configure_logging_for_run(resolved_settings)
    resolved_collaborators = collaborators or Collaborators.from_settings(resolved_settings)
    resolved_job = job if job is not None else ServiceJob()
    resolved_job.set_status(OperationStatus.FAILED_TO_START)
    state = ManagerState(job=resolved_job)

    stage_handlers: Dict[str, StageHandler] = {
        "reindex": _run_reindex_stage,
        "cache": _run_cache_stage,
        "packages": _run_packages_stage,
        "plots": _run_plots_stage,
    }

    for stage in CANONICAL_STAGES:
        stage_handlers[stage](request, resolved_settings, resolved_collaborators, state)
        status = state.stage_status.get(stage)
        if status is not None:
            resolved_job.set_status(status)
            logger.info("Stage %s finished: %s", stage, status.value, extra=console_kwargs())

    return state


def _run_reindex_stage(
    request: ManagerRequest,
    settings: Settings,
    collaborators: Collaborators,
    state: ManagerState,
) -> None:
    if request.reindex.is_empty:
        return
    coordinator = ReindexCoordinator(
        collaborators.repositories,
        collaborators.index_client,
        policy=settings.reindex_update_policy,
        job=state.job,
    )
    report = coordinator.run(request.reindex)
    state.reindex = report
    state.stage_status["reindex"] = report.status
    state.job.add_result(REINDEX_RESULT, report.to_dict())


def _run_cache_stage(
    request: ManagerRequest,
    settings: Settings,
    collaborators: Collaborators,
    state: ManagerState,
) -> None:
    if not request.list_cache and request.clear_cache is None:
        return
    manager = CacheManager(settings, job=state.job)
    if not manager.is_configured:
        logger.info("No cache path has been set")
        state.stage_status["cache"] = OperationStatus.IDLE
        return

    # Listing takes precedence over clearing within one request.
    if request.list_cache:
        listing = manager.list_entries(full_path=request.list_full_path)
        state.cache_listing = listing
        state.stage_status["cache"] = listing.status
        if listing.status.is_success:
            state.job.add_result(CACHED_FILES_RESULT, listing.to_records())
        return

    if request.clear_cache is None:
        return
    result = manager.clear(request.clear_cache)
    state.cache_clear = result
    state.stage_status["cache"] = result.status
    state.job.add_result(CACHE_CLEAR_RESULT, result.to_dict())


def _run_packages_stage(
    request: ManagerRequest,
    settings: Settings,
    collaborators: Collaborators,
    state: ManagerState,
) -> None:
    if not request.generate_packages:
        return
    if collaborators.writer is None:
        logger.info("No data package writer configured; skipping package generation")
        state.packages = ArtifactBatchResult(status=OperationStatus.IDLE)
        state.stage_status["packages"] = OperationStatus.IDLE
        return
    generator = ArtifactBatchGenerator(
        settings,
        collaborators.studies,
        collaborators.writer,
        job=state.job,
    )
    result = generator.regenerate_all()
    state.packages = result
    state.stage_status["packages"] = result.status
    if result.status is not OperationStatus.IDLE:
        state.job.add_result(PACKAGES_RESULT, result.to_dict())


def _run_plots_stage(
    request: ManagerRequest,
    settings: Settings,
    collaborators: Collaborators,
    state: ManagerState,
) -> None:
    study_id = request.remove_plots_study_id
    if not study_id:
        return
    if collaborators.plots is None:
        logger.info("No plot store configured; cannot remove plots for %s", study_id)
        state.plots_status = OperationStatus.IDLE
        state.stage_status["plots"] = OperationStatus.IDLE
        return
    try:
        status = collaborators.plots.remove_plots_for_study(study_id)
    except Exception as exc:
        logger.error("Removing plots for study %s failed", study_id, exc_info=True)
        state.job.add_error("plots", f"Removing plots for {study_id} failed: {exc}")
        status = OperationStatus.FAILED
    if status is not OperationStatus.SUCCEEDED:
        logger.warning("Plots for study %s were not removed: %s", study_id, status.value)
    state.plots_status = status
    state.stage_status["plots"] = status
    state.job.add_result(PLOTS_RESULT, {"study": study_id, "status": status.value})


def _configure_logging_for_run(settings: Settings) -> None:
    log_path: Path | None = settings.log_file
    if log_path is None:
        log_path = settings.data_root / "logs" / "manager.log"
    elif not log_path.is_absolute():
        log_path = settings.data_root / log_path

    configure_logging(
        log_to_file=settings.log_to_file,
        log_file=log_path if settings.log_to_file else None,
        log_to_console=settings.log_to_console,
        console_level=settings.log_level,
    )


__all__ = [
    "CANONICAL_STAGES",
    "Collaborators",
    "ManagerRequest",
    "ManagerState",
    "run_manager",
]
