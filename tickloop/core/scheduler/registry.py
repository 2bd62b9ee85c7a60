# tickloop/core/scheduler/registry.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, TypeAlias, Union
from tickloop.core.scheduler.computation import Computation

Dispatch = Callable[..., None]


@dataclass(slots=True, frozen=True)
class SelfWait:
    """A computation suspended itself via wait(); fires with the elapsed time."""

    resume_at: float
    started_at: float

    def payload(self, now: float) -> tuple[Any, ...]:
        return (now - self.started_at,)


@dataclass(slots=True, frozen=True)
class ExternalDelay:
    """Scheduled by delay(); fires with the saved arguments verbatim."""

    resume_at: float
    args: tuple[Any, ...]

    def payload(self, now: float) -> tuple[Any, ...]:
        return self.args


ResumptionRecord: TypeAlias = Union[SelfWait, ExternalDelay]


class WaitingRegistry:
    """
    Time-indexed resumption records, at most one per computation.

    Records are never removed on cancellation; drain_due() drops records of
    finished computations when it reaches them.
    """

    def __init__(self) -> None:
        self._records: dict[Computation, ResumptionRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, handle: object) -> bool:
        return handle in self._records

    def __iter__(self) -> Iterator[Computation]:
        return iter(list(self._records))

    def insert(self, handle: Computation, record: ResumptionRecord) -> None:
        """Register ``record`` for ``handle``, replacing any earlier one."""
        self._records[handle] = record

    def get(self, handle: Computation) -> Optional[ResumptionRecord]:
        return self._records.get(handle)

    def discard(self, handle: Computation) -> None:
        self._records.pop(handle, None)

    def next_deadline(self) -> Optional[float]:
        """Earliest resume_at among live records, or None when empty."""
        return min((r.resume_at for r in self._records.values()), default=None)

    def drain_due(self, now: float, dispatch: Dispatch) -> int:
        """
        Fire every record due at ``now`` and keep the rest for a later pass.

        The registry is swapped for an empty mapping before iterating, so
        computations resumed here that call wait()/delay() register into the
        fresh mapping and are not visited again in this pass. A handle that
        was re-registered during the pass keeps its newer record and its
        snapshot record is discarded.

        Args:
            now: The clock sample of the current loop iteration
            dispatch: Called as dispatch(handle, *payload) for each due record

        Returns:
            Number of records fired
        """
        snapshot, self._records = self._records, {}
        fired = 0
        for handle, record in snapshot.items():
            if handle.is_finished() or handle in self._records:
                continue
            if record.resume_at <= now:
                dispatch(handle, *record.payload(now))
                fired += 1
            else:
                self._records[handle] = record
        return fired
