"""Collaborator interfaces used by the manager services.

Concrete file-backed implementations live in :mod:`document_store`,
:mod:`search_index` and :mod:`packages`; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from fieldtrial_manager.models import OperationStatus

Document = Dict[str, Any]


class EntityRepository:
    """Source of the indexable documents for one entity type."""

    def load_index_documents(self) -> Optional[List[Document]]:
        """Return the documents to index, or ``None`` when none are available."""
        raise NotImplementedError("Subclasses must implement this method.")


class SearchIndexClient:
    """Full-text index that accepts batches of documents under a name."""

    def index(
        self,
        name: str,
        documents: Sequence[Document],
        update: bool,
    ) -> OperationStatus:
        raise NotImplementedError("Subclasses must implement this method.")


class StudyRepository:
    """Loads studies and expands them to their full representation."""

    def load_all_studies(self) -> Optional[List[Document]]:
        raise NotImplementedError("Subclasses must implement this method.")

    def to_full_study(self, record: Document) -> Optional[Document]:
        raise NotImplementedError("Subclasses must implement this method.")


class ArtifactWriter:
    """Serializes a single study to its derived data package."""

    def write_study_package(self, study: Document) -> bool:
        raise NotImplementedError("Subclasses must implement this method.")


class PlotRemover:
    """Deletes every plot attached to a study."""

    def remove_plots_for_study(self, study_id: str) -> OperationStatus:
        raise NotImplementedError("Subclasses must implement this method.")


def study_label(study: Document) -> str:
    """Best-effort human readable name for log and error messages."""
    for key in ("name", "so:name", "_id", "id"):
        value = study.get(key)
        if value:
            return str(value)
    return "<unnamed study>"


__all__ = [
    "ArtifactWriter",
    "Document",
    "EntityRepository",
    "PlotRemover",
    "SearchIndexClient",
    "StudyRepository",
    "study_label",
]
