"""Job records that collect statuses, errors and results for callers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .status import OperationStatus


class Job:
    """Interface of the job record a hosting framework hands to the manager."""

    def set_status(self, status: OperationStatus) -> None:
        raise NotImplementedError("Subclasses must implement this method.")

    def add_error(self, name: str, message: str) -> None:
        raise NotImplementedError("Subclasses must implement this method.")

    def add_result(self, title: str, payload: Any) -> None:
        raise NotImplementedError("Subclasses must implement this method.")


@dataclass
class JobError:
    name: str
    message: str
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "message": self.message,
            "recorded_at": self.recorded_at.isoformat(),
        }


@dataclass
class ServiceJob(Job):
    """In-memory job record."""

    name: str = "field-trial-manager"
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: OperationStatus = OperationStatus.IDLE
    errors: List[JobError] = field(default_factory=list)
    results: Dict[str, Any] = field(default_factory=dict)
    status_history: List[OperationStatus] = field(default_factory=list)

    def set_status(self, status: OperationStatus) -> None:
        self.status = status
        self.status_history.append(status)

    def add_error(self, name: str, message: str) -> None:
        self.errors.append(JobError(name=name, message=message))

    def add_result(self, title: str, payload: Any) -> None:
        self.results[title] = payload

    def errors_for(self, name: str) -> List[JobError]:
        return [error for error in self.errors if error.name == name]

    def result(self, title: str) -> Optional[Any]:
        return self.results.get(title)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "job_id": self.job_id,
            "status": self.status.value,
            "errors": [error.to_dict() for error in self.errors],
            "results": dict(self.results),
        }


__all__ = ["Job", "JobError", "ServiceJob"]
