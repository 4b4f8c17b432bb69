"""Operation status vocabulary and batch aggregation helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OperationStatus(str, Enum):
    """Status values reported to callers for a job or a single item."""

    IDLE = "idle"
    FAILED_TO_START = "failed_to_start"
    FAILED = "failed"
    PARTIALLY_SUCCEEDED = "partially_succeeded"
    SUCCEEDED = "succeeded"

    @property
    def is_success(self) -> bool:
        return self in (OperationStatus.SUCCEEDED, OperationStatus.PARTIALLY_SUCCEEDED)


def aggregate_status(
    succeeded: int,
    attempted: int,
    *,
    partial: int = 0,
    when_empty: OperationStatus = OperationStatus.FAILED_TO_START,
) -> OperationStatus:
    """Collapse per-item counters into one status.

    Parameters
    ----------
    succeeded:
        Number of items that fully succeeded.
    attempted:
        Number of items that were run.
    partial:
        Number of items that only partially succeeded. They never make the
        aggregate ``SUCCEEDED`` but they do lift it above ``FAILED``.
    when_empty:
        Status returned when nothing was attempted.
    """
    if attempted <= 0:
        return when_empty
    if succeeded >= attempted:
        return OperationStatus.SUCCEEDED
    if succeeded + partial > 0:
        return OperationStatus.PARTIALLY_SUCCEEDED
    return OperationStatus.FAILED


@dataclass
class OutcomeTally:
    """Running counters for a sequential batch."""

    attempted: int = 0
    succeeded: int = 0
    partial: int = 0

    def record(self, status: OperationStatus) -> None:
        self.attempted += 1
        if status is OperationStatus.SUCCEEDED:
            self.succeeded += 1
        elif status is OperationStatus.PARTIALLY_SUCCEEDED:
            self.partial += 1

    def status(
        self,
        *,
        when_empty: OperationStatus = OperationStatus.FAILED_TO_START,
    ) -> OperationStatus:
        return aggregate_status(
            self.succeeded,
            self.attempted,
            partial=self.partial,
            when_empty=when_empty,
        )


__all__ = ["OperationStatus", "OutcomeTally", "aggregate_status"]
