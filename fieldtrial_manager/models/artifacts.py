"""Derived artifact batch models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .status import OperationStatus


@dataclass
class ArtifactBatchResult:
    """Counters for one data package regeneration run.

    Covers the studies loaded when the batch started; studies added while it
    runs are not picked up.
    """

    attempted: int = 0
    succeeded: int = 0
    failed_studies: List[str] = field(default_factory=list)
    status: OperationStatus = OperationStatus.IDLE

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status.value,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed_studies": list(self.failed_studies),
        }


__all__ = ["ArtifactBatchResult"]
