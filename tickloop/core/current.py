# tickloop/core/current.py
"""Process-wide default scheduler and module-level shortcuts to it."""

from __future__ import annotations
from typing import Any, Generator, Optional
from tickloop.core.defaults import DEFAULT_WAIT_SECONDS
from tickloop.core.models.config import SchedulerConfig
from tickloop.core.scheduler.computation import Computation, FnOrHandle
from tickloop.core.scheduler.service import LoopStats, Scheduler

_default_scheduler: Optional[Scheduler] = None


def set_default_scheduler(scheduler: Optional[Scheduler]) -> None:
    """Replace the default scheduler; None makes the next access create a new one."""
    global _default_scheduler
    _default_scheduler = scheduler


def get_default_scheduler() -> Scheduler:
    """Return the default scheduler, creating it from TICKLOOP_* env on first use."""
    global _default_scheduler
    if _default_scheduler is None:
        _default_scheduler = Scheduler(SchedulerConfig.from_env())
    return _default_scheduler


def spawn(target: FnOrHandle, *args: Any) -> Computation:
    return get_default_scheduler().spawn(target, *args)


def defer(target: FnOrHandle, *args: Any) -> Computation:
    return get_default_scheduler().defer(target, *args)


def delay(duration: float, target: FnOrHandle, *args: Any) -> Computation:
    return get_default_scheduler().delay(duration, target, *args)


def wait(duration: float = DEFAULT_WAIT_SECONDS) -> Generator[None, Any, Any]:
    return get_default_scheduler().wait(duration)


def cancel(handle: Computation) -> None:
    get_default_scheduler().cancel(handle)


def running() -> Optional[Computation]:
    return get_default_scheduler().running()


def start(entry: Optional[FnOrHandle] = None, *args: Any) -> LoopStats:
    return get_default_scheduler().start(entry, *args)
