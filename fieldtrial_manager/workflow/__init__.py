"""Workflow entry points for management jobs."""

from .manager import (
    CANONICAL_STAGES,
    Collaborators,
    ManagerRequest,
    ManagerState,
    run_manager,
)

__all__ = [
    "CANONICAL_STAGES",
    "Collaborators",
    "ManagerRequest",
    "ManagerState",
    "run_manager",
]
