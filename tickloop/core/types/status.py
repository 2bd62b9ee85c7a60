# core/types/status.py
"""
Core types and enums used throughout the library.
This module should not import from other library modules.
"""

from enum import Enum


class ComputationStatus(Enum):
    """Lifecycle of a resumable computation"""

    CREATED = 'created'  # Wrapped but never resumed.

    RUNNING = 'running'  # Currently executing; at most one per scheduler.

    SUSPENDED = 'suspended'  # Yielded back and can be resumed again.

    COMPLETED = 'completed'  # Returned normally.

    FAILED = 'failed'  # Raised out of its body.
    CANCELLED = 'cancelled'  # Terminated through cancel().

    @property
    def is_terminal(self) -> bool:
        """Whether this status represents a final state (no further resumption)."""
        return self in COMPUTATION_TERMINAL_STATES


COMPUTATION_TERMINAL_STATES: frozenset[ComputationStatus] = frozenset({
    ComputationStatus.COMPLETED,
    ComputationStatus.FAILED,
    ComputationStatus.CANCELLED,
})


class ResumeErrorCode(str, Enum):
    """Why a resumption did not succeed."""

    RAISED = 'RAISED'  # The computation body raised an exception.
    RESUME_DEAD = 'RESUME_DEAD'  # The computation had already finished.
    RESUME_RUNNING = 'RESUME_RUNNING'  # The computation tried to resume itself.
