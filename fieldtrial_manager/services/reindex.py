"""Rebuild the search index from the entity collections.

Each entity type is fetched from its own repository and pushed to the search
index under a fixed per-type name. Types are processed one after another in
:data:`REINDEX_ORDER`; a failing type is recorded and the session carries on
with the next one. The aggregate status is only computed once every requested
type has run.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional, Sequence

from fieldtrial_manager.models import (
    REINDEX_ORDER,
    EntityType,
    Job,
    OperationStatus,
    ReindexReport,
    ReindexRequest,
    TypeOutcome,
    UpdateModePolicy,
    index_name_for,
)
from fieldtrial_manager.services.interfaces import (
    Document,
    EntityRepository,
    SearchIndexClient,
)
from fieldtrial_manager.services.logging import console_kwargs

logger = logging.getLogger(__name__)

REINDEX_ERROR_NAME = "reindex"


class ReindexCoordinator:
    """Push entity documents from their repositories into the search index."""

    def __init__(
        self,
        repositories: Mapping[EntityType, EntityRepository],
        index_client: SearchIndexClient,
        *,
        policy: UpdateModePolicy = UpdateModePolicy.FORCE_AFTER_FIRST,
        job: Optional[Job] = None,
    ) -> None:
        self.repositories = dict(repositories)
        self.index_client = index_client
        self.policy = policy
        self.job = job

    def reindex_type(self, entity_type: EntityType, update: bool) -> TypeOutcome:
        """Fetch and index the documents of a single entity type."""
        index_name = index_name_for(entity_type)
        outcome = TypeOutcome(
            entity_type=entity_type,
            index_name=index_name,
            update=update,
            status=OperationStatus.FAILED,
        )

        repository = self.repositories.get(entity_type)
        if repository is None:
            return self._fail(outcome, f"No repository configured for {entity_type.value}")

        try:
            documents = repository.load_index_documents()
        except Exception as exc:  # one collection must not stop the session
            logger.debug("Loading %s for indexing failed", entity_type.value, exc_info=True)
            return self._fail(outcome, f"Loading {entity_type.value} failed: {exc}")

        if documents is None:
            return self._fail(outcome, f"No {entity_type.value} available to index")

        outcome.document_count = len(documents)
        try:
            outcome.status = self.index_client.index(index_name, documents, update)
        except Exception as exc:
            logger.debug("Indexing %s into %s failed", entity_type.value, index_name, exc_info=True)
            return self._fail(outcome, f"Indexing {entity_type.value} failed: {exc}")

        if outcome.status.is_success:
            logger.info(
                "Indexed %d %s into %s (update=%s): %s",
                outcome.document_count,
                entity_type.value,
                index_name,
                update,
                outcome.status.value,
                extra=console_kwargs(),
            )
        else:
            self._fail(outcome, f"Index {index_name} reported {outcome.status.value}")
        return outcome

    def reindex_selected(
        self,
        entity_types: Iterable[EntityType],
        update: bool,
    ) -> ReindexReport:
        """Reindex the requested types in priority order.

        Under :attr:`UpdateModePolicy.FORCE_AFTER_FIRST` only the first
        processed type sees ``update``; every later type runs in update mode.
        """
        requested = {EntityType.parse(item) for item in entity_types}
        ordered = [entity for entity in REINDEX_ORDER if entity in requested]
        if not ordered:
            logger.info("No entity types requested for reindexing")
            return ReindexReport(status=OperationStatus.FAILED_TO_START)

        outcomes: List[TypeOutcome] = []
        for position, entity_type in enumerate(ordered):
            mode = self.policy.mode_for(position, update)
            outcomes.append(self.reindex_type(entity_type, mode))

        report = ReindexReport.from_outcomes(outcomes)
        logger.info(
            "Reindexed %d/%d entity types (%d partial): %s",
            report.succeeded,
            report.attempted,
            report.partially_succeeded,
            report.status.value,
            extra=console_kwargs(),
        )
        return report

    def reindex_all(self, update: bool) -> ReindexReport:
        return self.reindex_selected(REINDEX_ORDER, update)

    def run(self, request: ReindexRequest) -> ReindexReport:
        """Dispatch a request; the global flag overrides per-type flags."""
        if request.reindex_all:
            return self.reindex_all(request.update)
        return self.reindex_selected(request.selected_types(), request.update)

    def index_data(self, name: str, documents: Sequence[Document]) -> OperationStatus:
        """Add ad hoc documents to an index without replacing what is there."""
        try:
            return self.index_client.index(name, documents, True)
        except Exception as exc:
            logger.exception("Indexing ad hoc data into %s failed", name)
            if self.job is not None:
                self.job.add_error(REINDEX_ERROR_NAME, f"Indexing into {name} failed: {exc}")
            return OperationStatus.FAILED

    def _fail(self, outcome: TypeOutcome, message: str) -> TypeOutcome:
        if outcome.status.is_success:
            outcome.status = OperationStatus.FAILED
        outcome.error_message = message
        logger.error(message)
        if self.job is not None:
            self.job.add_error(REINDEX_ERROR_NAME, message)
        return outcome


__all__ = ["ReindexCoordinator"]
