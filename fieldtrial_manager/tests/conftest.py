from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pytest

from fieldtrial_manager.config import Settings
from fieldtrial_manager.models import EntityType, OperationStatus
from fieldtrial_manager.services.interfaces import (
    ArtifactWriter,
    Document,
    EntityRepository,
    SearchIndexClient,
    StudyRepository,
)
from fieldtrial_manager.services.logging import stop_logging


class StaticRepository(EntityRepository):
    """Repository returning a fixed document list (or raising)."""

    def __init__(
        self,
        documents: Optional[List[Document]],
        *,
        error: Optional[Exception] = None,
    ) -> None:
        self.documents = documents
        self.error = error
        self.calls = 0

    def load_index_documents(self) -> Optional[List[Document]]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.documents


class RecordingIndexClient(SearchIndexClient):
    """Index client that records every submission."""

    def __init__(
        self,
        statuses: Optional[Dict[str, OperationStatus]] = None,
        *,
        errors: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self.statuses = statuses or {}
        self.errors = errors or {}
        self.calls: List[Tuple[str, int, bool]] = []

    def index(
        self,
        name: str,
        documents: Sequence[Document],
        update: bool,
    ) -> OperationStatus:
        self.calls.append((name, len(documents), update))
        if name in self.errors:
            raise self.errors[name]
        return self.statuses.get(name, OperationStatus.SUCCEEDED)

    @property
    def index_names(self) -> List[str]:
        return [name for name, _, _ in self.calls]

    @property
    def update_flags(self) -> List[bool]:
        return [update for _, _, update in self.calls]


class InMemoryStudies(StudyRepository):
    def __init__(
        self,
        studies: Optional[List[Document]],
        *,
        broken: Sequence[str] = (),
        load_error: Optional[Exception] = None,
    ) -> None:
        self.studies = studies
        self.broken = set(broken)
        self.load_error = load_error

    def load_all_studies(self) -> Optional[List[Document]]:
        if self.load_error is not None:
            raise self.load_error
        return None if self.studies is None else list(self.studies)

    def to_full_study(self, record: Document) -> Optional[Document]:
        if record.get("name") in self.broken:
            raise ValueError(f"cannot convert {record['name']}")
        return dict(record, plots=[])


class RecordingWriter(ArtifactWriter):
    def __init__(self, *, fail_for: Sequence[str] = (), raise_for: Sequence[str] = ()) -> None:
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)
        self.written: List[str] = []

    def write_study_package(self, study: Document) -> bool:
        name = study.get("name")
        if name in self.raise_for:
            raise OSError(f"disk full while writing {name}")
        if name in self.fail_for:
            return False
        self.written.append(str(name))
        return True


@pytest.fixture(autouse=True)
def _stop_log_listener():
    yield
    stop_logging()


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    """Settings rooted in a temp directory with console noise disabled."""

    def _make(**overrides) -> Settings:
        values = {
            "data_root": tmp_path / "data",
            "index_root": tmp_path / "index",
            "show_progress": False,
            "log_to_console": False,
            "log_to_file": False,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "study-cache"
    directory.mkdir()
    return directory


@pytest.fixture
def repositories() -> Dict[EntityType, StaticRepository]:
    return {
        entity_type: StaticRepository([{"id": f"{entity_type.value}-1"}])
        for entity_type in EntityType
    }


@pytest.fixture
def index_client() -> RecordingIndexClient:
    return RecordingIndexClient()


@pytest.fixture
def fakes():
    """Expose the fake collaborator classes to tests."""

    class _Fakes:
        StaticRepository = StaticRepository
        RecordingIndexClient = RecordingIndexClient
        InMemoryStudies = InMemoryStudies
        RecordingWriter = RecordingWriter

    return _Fakes
