"""Reindexing data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .status import OperationStatus, OutcomeTally


class EntityType(str, Enum):
    """Entity collections that can be pushed into the search index."""

    STUDIES = "studies"
    TRIALS = "trials"
    LOCATIONS = "locations"
    MEASURED_VARIABLES = "measured_variables"
    PROGRAMMES = "programmes"
    TREATMENTS = "treatments"

    @classmethod
    def parse(cls, value: "str | EntityType") -> "EntityType":
        if isinstance(value, EntityType):
            return value
        normalized = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(item.value for item in cls)
            raise ValueError(f"Unknown entity type {value!r}; expected one of {choices}") from None


# Studies and trials reference each other, so studies go first.
REINDEX_ORDER: Tuple[EntityType, ...] = (
    EntityType.STUDIES,
    EntityType.TRIALS,
    EntityType.LOCATIONS,
    EntityType.MEASURED_VARIABLES,
    EntityType.PROGRAMMES,
    EntityType.TREATMENTS,
)

INDEX_NAMES: Mapping[EntityType, str] = {
    EntityType.STUDIES: "index_studies",
    EntityType.TRIALS: "index_trials",
    EntityType.LOCATIONS: "index_locations",
    EntityType.MEASURED_VARIABLES: "index_measured_variables",
    EntityType.PROGRAMMES: "index_programmes",
    EntityType.TREATMENTS: "index_treatments",
}


def index_name_for(entity_type: EntityType) -> str:
    return INDEX_NAMES[entity_type]


class UpdateModePolicy(str, Enum):
    """How the caller's update flag is applied across a multi-type session.

    ``FORCE_AFTER_FIRST`` uses the caller's flag for the first processed type
    and update mode for every later one, so a session never wipes the index
    partway through. ``AS_REQUESTED`` passes the caller's flag to every type.
    """

    FORCE_AFTER_FIRST = "force_after_first"
    AS_REQUESTED = "as_requested"

    def mode_for(self, position: int, requested: bool) -> bool:
        if self is UpdateModePolicy.FORCE_AFTER_FIRST and position > 0:
            return True
        return requested


@dataclass
class ReindexRequest:
    """Which entity types to push into the index and how."""

    types: Dict[EntityType, bool] = field(default_factory=dict)
    reindex_all: bool = False
    update: bool = False

    @classmethod
    def for_types(
        cls,
        types: Iterable["str | EntityType"],
        *,
        update: bool = False,
    ) -> "ReindexRequest":
        return cls(
            types={EntityType.parse(item): True for item in types},
            update=update,
        )

    def selected_types(self) -> List[EntityType]:
        """Requested types in reindex priority order."""
        if self.reindex_all:
            return list(REINDEX_ORDER)
        return [entity for entity in REINDEX_ORDER if self.types.get(entity, False)]

    @property
    def is_empty(self) -> bool:
        return not self.reindex_all and not any(self.types.values())


@dataclass
class TypeOutcome:
    """Result of reindexing a single entity type."""

    entity_type: EntityType
    index_name: str
    update: bool
    status: OperationStatus
    document_count: int = 0
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "entity_type": self.entity_type.value,
            "index_name": self.index_name,
            "update": self.update,
            "status": self.status.value,
            "document_count": self.document_count,
            "error_message": self.error_message,
        }


@dataclass
class ReindexReport:
    """Outcomes of a reindex session, aggregated once every type has run."""

    outcomes: List[TypeOutcome] = field(default_factory=list)
    status: OperationStatus = OperationStatus.FAILED_TO_START

    @classmethod
    def from_outcomes(cls, outcomes: List[TypeOutcome]) -> "ReindexReport":
        tally = OutcomeTally()
        for outcome in outcomes:
            tally.record(outcome.status)
        return cls(outcomes=list(outcomes), status=tally.status())

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is OperationStatus.SUCCEEDED)

    @property
    def partially_succeeded(self) -> int:
        return sum(
            1
            for outcome in self.outcomes
            if outcome.status is OperationStatus.PARTIALLY_SUCCEEDED
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status.value,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "partially_succeeded": self.partially_succeeded,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


__all__ = [
    "EntityType",
    "INDEX_NAMES",
    "REINDEX_ORDER",
    "ReindexReport",
    "ReindexRequest",
    "TypeOutcome",
    "UpdateModePolicy",
    "index_name_for",
]
