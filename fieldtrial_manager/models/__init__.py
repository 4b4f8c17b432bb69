"""Convenience re-exports for manager data models."""

from .artifacts import ArtifactBatchResult
from .cache import (
    CACHE_SUFFIX,
    CACHE_WILDCARD,
    CacheClearResult,
    CacheClearSpec,
    CacheEntry,
    CacheListing,
)
from .job import Job, JobError, ServiceJob
from .reindex import (
    INDEX_NAMES,
    REINDEX_ORDER,
    EntityType,
    ReindexReport,
    ReindexRequest,
    TypeOutcome,
    UpdateModePolicy,
    index_name_for,
)
from .status import OperationStatus, OutcomeTally, aggregate_status

__all__ = [
    "ArtifactBatchResult",
    "CACHE_SUFFIX",
    "CACHE_WILDCARD",
    "CacheClearResult",
    "CacheClearSpec",
    "CacheEntry",
    "CacheListing",
    "EntityType",
    "INDEX_NAMES",
    "Job",
    "JobError",
    "OperationStatus",
    "OutcomeTally",
    "REINDEX_ORDER",
    "ReindexReport",
    "ReindexRequest",
    "ServiceJob",
    "TypeOutcome",
    "UpdateModePolicy",
    "aggregate_status",
    "index_name_for",
]
