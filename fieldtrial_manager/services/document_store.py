"""File-backed document store collaborators.

Each entity collection is a JSON array stored as ``<data_root>/<entity>.json``
(for example ``studies.json``); the plots of a study live in
``<data_root>/plots/<study id>.json``. Documents exported from MongoDB keep
their ``{"_id": {"$oid": ...}}`` identifiers, which are flattened here.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from fieldtrial_manager.config import Settings
from fieldtrial_manager.models import EntityType, OperationStatus
from fieldtrial_manager.services.interfaces import (
    Document,
    EntityRepository,
    PlotRemover,
    StudyRepository,
)

logger = logging.getLogger(__name__)

PLOTS_DIRNAME = "plots"


def collection_path(data_root: Path, entity_type: EntityType) -> Path:
    return data_root / f"{entity_type.value}.json"


def document_id(document: Document) -> Optional[str]:
    """Return the identifier of a stored document as a plain string."""
    raw: Any = document.get("_id", document.get("id"))
    if isinstance(raw, dict):
        raw = raw.get("$oid")
    if raw is None or raw == "":
        return None
    return str(raw)


def read_json_array(path: Path) -> Optional[List[Document]]:
    """Load a JSON array of objects, returning ``None`` when unusable."""
    if not path.exists():
        logger.warning("Collection file %s does not exist", path)
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Could not read collection file %s: %s", path, exc)
        return None
    if not isinstance(payload, list):
        logger.error("Collection file %s does not contain a JSON array", path)
        return None
    return [item for item in payload if isinstance(item, dict)]


class JsonCollectionRepository(EntityRepository):
    """Indexable documents for one entity type, read from a JSON file."""

    def __init__(self, data_root: Path, entity_type: EntityType) -> None:
        self.data_root = Path(data_root)
        self.entity_type = entity_type

    @property
    def path(self) -> Path:
        return collection_path(self.data_root, self.entity_type)

    def load_index_documents(self) -> Optional[List[Document]]:
        records = read_json_array(self.path)
        if records is None:
            return None
        documents: List[Document] = []
        for record in records:
            document = {key: value for key, value in record.items() if key != "_id"}
            identifier = document_id(record)
            if identifier is not None:
                document["id"] = identifier
            document.setdefault("type", self.entity_type.value)
            documents.append(document)
        return documents


def build_repositories(settings: Settings) -> Dict[EntityType, EntityRepository]:
    """One file-backed repository per entity type."""
    return {
        entity_type: JsonCollectionRepository(settings.data_root, entity_type)
        for entity_type in EntityType
    }


class JsonStudyRepository(StudyRepository):
    """Studies and their plots, read from the data directory."""

    def __init__(self, data_root: Path) -> None:
        self.data_root = Path(data_root)

    @property
    def plots_root(self) -> Path:
        return self.data_root / PLOTS_DIRNAME

    def load_all_studies(self) -> Optional[List[Document]]:
        return read_json_array(collection_path(self.data_root, EntityType.STUDIES))

    def to_full_study(self, record: Document) -> Optional[Document]:
        identifier = document_id(record)
        if identifier is None:
            raise ValueError("Study record has no identifier")
        study = {key: value for key, value in record.items() if key != "_id"}
        study["id"] = identifier
        study.setdefault("name", identifier)
        study["plots"] = self._load_plots(identifier)
        return study

    def _load_plots(self, study_id: str) -> List[Document]:
        path = self.plots_root / f"{study_id}.json"
        if not path.exists():
            return []
        plots = read_json_array(path)
        if plots is None:
            raise ValueError(f"Plots file {path} is not a JSON array")
        return plots


class JsonPlotStore(PlotRemover):
    """Remove the stored plots of a study."""

    def __init__(self, data_root: Path) -> None:
        self.plots_root = Path(data_root) / PLOTS_DIRNAME

    def remove_plots_for_study(self, study_id: str) -> OperationStatus:
        path = self.plots_root / f"{study_id}.json"
        if not path.exists():
            logger.warning("No plots stored for study %s", study_id)
            return OperationStatus.FAILED
        try:
            path.unlink()
        except OSError as exc:
            logger.error("Failed to remove plots for study %s: %s", study_id, exc)
            return OperationStatus.FAILED
        logger.info("Removed plots for study %s", study_id)
        return OperationStatus.SUCCEEDED


__all__ = [
    "JsonCollectionRepository",
    "JsonPlotStore",
    "JsonStudyRepository",
    "build_repositories",
    "collection_path",
    "document_id",
    "read_json_array",
]
