"""File-backed search index client.

Every index is a JSON-lines file ``<index_root>/<name>.jsonl`` guarded by a
sibling lock file. Replace mode rewrites the whole index; update mode upserts
documents by their ``id`` and leaves the rest untouched.
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Sequence

from filelock import FileLock

from fieldtrial_manager.models import OperationStatus
from fieldtrial_manager.services.interfaces import Document, SearchIndexClient

logger = logging.getLogger(__name__)

INDEX_SUFFIX = ".jsonl"


class JsonLinesIndexClient(SearchIndexClient):
    """Store index documents as JSON lines on disk."""

    def __init__(self, index_root: Path) -> None:
        self.index_root = Path(index_root)

    def index_path(self, name: str) -> Path:
        return self.index_root / f"{name}{INDEX_SUFFIX}"

    @contextmanager
    def _acquire_lock(self, name: str) -> Iterator[None]:
        self.index_root.mkdir(parents=True, exist_ok=True)
        lock = FileLock(str(self.index_root / f"{name}.lock"))
        lock.acquire()
        try:
            yield
        finally:
            lock.release()

    def load(self, name: str) -> List[Document]:
        path = self.index_path(name)
        if not path.exists():
            return []
        documents: List[Document] = []
        with path.open("r", encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if line:
                    documents.append(json.loads(line))
        return documents

    def index(
        self,
        name: str,
        documents: Sequence[Document],
        update: bool,
    ) -> OperationStatus:
        with self._acquire_lock(name):
            if update:
                merged, skipped = self._upsert(name, documents)
            else:
                merged, skipped = list(documents), 0
            self._write(name, merged)

        written = len(documents) - skipped
        logger.debug(
            "Index %s: wrote %d of %d documents (update=%s)",
            name,
            written,
            len(documents),
            update,
        )
        if skipped == 0:
            return OperationStatus.SUCCEEDED
        if written > 0:
            return OperationStatus.PARTIALLY_SUCCEEDED
        return OperationStatus.FAILED

    def _upsert(self, name: str, documents: Sequence[Document]) -> tuple[List[Document], int]:
        existing: Dict[str, Document] = {}
        anonymous: List[Document] = []
        for document in self.load(name):
            key = document.get("id")
            if key is None:
                anonymous.append(document)
            else:
                existing[str(key)] = document

        skipped = 0
        for document in documents:
            key = document.get("id")
            if key is None:
                logger.warning("Skipping document without id for index %s", name)
                skipped += 1
                continue
            existing[str(key)] = dict(document)
        return anonymous + list(existing.values()), skipped

    def _write(self, name: str, documents: Sequence[Document]) -> None:
        path = self.index_path(name)
        tmp_path = path.parent / f"{path.name}.tmp"
        with tmp_path.open("w", encoding="utf-8") as handle:
            for document in documents:
                handle.write(json.dumps(document, default=str))
                handle.write("\n")
        os.replace(tmp_path, path)


__all__ = ["INDEX_SUFFIX", "JsonLinesIndexClient"]
