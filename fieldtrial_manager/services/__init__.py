"""Service layer for the field trial manager."""

from __future__ import annotations

from . import logging
from .artifacts import ArtifactBatchGenerator
from .cache import CacheManager
from .cache_files import CacheFileScanner
from .document_store import JsonCollectionRepository, JsonPlotStore, JsonStudyRepository
from .interfaces import (
    ArtifactWriter,
    EntityRepository,
    PlotRemover,
    SearchIndexClient,
    StudyRepository,
)
from .packages import FrictionlessPackageWriter
from .reindex import ReindexCoordinator
from .search_index import JsonLinesIndexClient

__all__ = [
    "ArtifactBatchGenerator",
    "ArtifactWriter",
    "CacheFileScanner",
    "CacheManager",
    "EntityRepository",
    "FrictionlessPackageWriter",
    "JsonCollectionRepository",
    "JsonLinesIndexClient",
    "JsonPlotStore",
    "JsonStudyRepository",
    "PlotRemover",
    "ReindexCoordinator",
    "SearchIndexClient",
    "StudyRepository",
    "logging",
]
