# tickloop/core/scheduler/deferred.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable
from tickloop.core.scheduler.computation import Computation


@dataclass(slots=True, frozen=True)
class DeferredEntry:
    handle: Computation
    args: tuple[Any, ...]


class DeferredQueue:
    """FIFO of computations to resume at the end of the current cycle."""

    def __init__(self) -> None:
        self._entries: list[DeferredEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def enqueue(self, handle: Computation, args: tuple[Any, ...]) -> None:
        self._entries.append(DeferredEntry(handle=handle, args=args))

    def drain(self, dispatch: Callable[..., None]) -> int:
        """
        Dispatch entries in enqueue order, including ones appended mid-drain.

        Entries whose computation already finished are skipped. Processed
        entries are removed even if a dispatch is interrupted.

        Returns:
            Number of entries dispatched
        """
        index = 0
        ran = 0
        try:
            while index < len(self._entries):
                entry = self._entries[index]
                index += 1
                if entry.handle.is_finished():
                    continue
                dispatch(entry.handle, *entry.args)
                ran += 1
        finally:
            del self._entries[:index]
        return ran
