# tickloop/core/scheduler/service.py
from __future__ import annotations
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Generator, Optional
from tickloop.core.defaults import DEFAULT_WAIT_SECONDS
from tickloop.core.errors import ErrorCode, usage_error
from tickloop.core.logging import apply_level, get_logger
from tickloop.core.models.config import SchedulerConfig
from tickloop.core.scheduler.computation import (
    Computation,
    FnOrHandle,
    resolve_target,
)
from tickloop.core.scheduler.deferred import DeferredQueue
from tickloop.core.scheduler.dispatcher import Dispatcher, ErrorSink
from tickloop.core.scheduler.registry import ExternalDelay, SelfWait, WaitingRegistry
from tickloop.core.types.result import is_err

logger = get_logger('scheduler')


@dataclass
class LoopStats:
    """Counters for one start() call."""

    iterations: int = 0
    fired: int = 0
    deferred_run: int = 0
    failures: int = 0


def _check_duration(duration: Any) -> float:
    if (
        isinstance(duration, bool)
        or not isinstance(duration, (int, float))
        or math.isnan(duration)
        or duration < 0
    ):
        raise usage_error(
            f'invalid duration {duration!r}',
            code=ErrorCode.INVALID_DURATION,
            notes=['durations are seconds and must be a non-negative number'],
            help_text='use wait() or wait(0) to resume on the next loop pass',
        )
    return float(duration)


class Scheduler:
    """
    Single-threaded cooperative scheduler.

    Owns the scheduling state: the last clock sample, the waiting registry
    (timed resumptions) and the deferred queue (end-of-cycle resumptions).
    Only start() samples the clock; every registration is relative to the
    last sample (or the one taken at construction before the loop first runs).

    Example:
        scheduler = Scheduler()

        def worker(name):
            elapsed = yield from scheduler.wait(1)
            print(name, 'woke after', elapsed)

        scheduler.spawn(worker, 'a')
        scheduler.start()
    """

    def __init__(
        self,
        config: Optional[SchedulerConfig] = None,
        *,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None,
        error_sink: Optional[ErrorSink] = None,
    ):
        if config is None:
            config = SchedulerConfig()
        else:
            # An explicit config owns the level of every tickloop logger.
            apply_level(config.level())
        self.config = config
        self.clock: Callable[[], float] = clock or self.config.clock_fn()
        self.sleep: Callable[[float], None] = sleep or time.sleep
        self.waiting = WaitingRegistry()
        self.deferred = DeferredQueue()
        self.dispatcher = Dispatcher(
            error_sink=error_sink,
            exception_mapper=self.config.exception_mapper,
            default_error_code=self.config.default_unhandled_error_code,
        )
        self.last_tick: float = self.clock()
        self._looping = False
        self._stop_requested = False

    def __repr__(self) -> str:
        return (
            f'<Scheduler waiting={len(self.waiting)} deferred={len(self.deferred)} '
            f'last_tick={self.last_tick}>'
        )

    def running(self) -> Optional[Computation]:
        """The computation currently executing on this scheduler, if any."""
        return self.dispatcher.current

    def has_pending(self) -> bool:
        return bool(self.waiting) or bool(self.deferred)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def spawn(self, target: FnOrHandle, *args: Any) -> Computation:
        """Resume ``target`` right now, before returning its handle."""
        handle = resolve_target(target)
        self.dispatcher.dispatch(handle, *args)
        return handle

    def defer(self, target: FnOrHandle, *args: Any) -> Computation:
        """Resume ``target`` with ``args`` at the end of the current cycle."""
        handle = resolve_target(target)
        self.deferred.enqueue(handle, args)
        return handle

    def delay(self, duration: float, target: FnOrHandle, *args: Any) -> Computation:
        """Resume ``target`` with ``args`` once ``duration`` seconds have passed.

        Replaces any timed resumption already registered for the handle.
        """
        duration = _check_duration(duration)
        handle = resolve_target(target)
        self.waiting.insert(handle, ExternalDelay(self.last_tick + duration, args))
        return handle

    def wait(
        self, duration: float = DEFAULT_WAIT_SECONDS
    ) -> Generator[None, Any, Any]:
        """
        Suspend the calling computation for ``duration`` seconds.

        Use it as ``elapsed = yield from scheduler.wait(duration)`` inside a
        generator body. The elapsed time is measured between loop clock
        samples and is never smaller than ``duration``.

        Calling it without ``yield from`` (for example from a plain function)
        registers nothing; the computation then fails with WAIT_NOT_DRIVEN
        once its current step returns.

        Raises:
            SchedulerUsageError: called outside a running computation, or
                with a negative/non-numeric duration
        """
        handle = self.dispatcher.current
        if handle is None:
            raise usage_error(
                'wait() called outside a running computation',
                code=ErrorCode.WAIT_OUTSIDE_COMPUTATION,
                notes=['only a computation started by spawn/defer/delay/start can suspend'],
                help_text=(
                    'move the call into a generator function and run it with\n'
                    '  scheduler.spawn(fn)  or  scheduler.start(fn)'
                ),
            )
        duration = _check_duration(duration)
        suspension = self._suspend(handle, duration)
        handle.pending_wait = suspension
        return suspension

    def _suspend(
        self, handle: Computation, duration: float
    ) -> Generator[None, Any, Any]:
        handle.pending_wait = None
        self.waiting.insert(
            handle,
            SelfWait(resume_at=self.last_tick + duration, started_at=self.last_tick),
        )
        elapsed = yield
        return elapsed

    def cancel(self, handle: Computation) -> None:
        """Prevent ``handle`` from ever being resumed again.

        Pending records for it stay where they are and are skipped when drained.
        If closing the computation raises, the failure is reported against
        ``handle`` through the error sink and cancel() still returns normally.
        """
        if not isinstance(handle, Computation):
            raise usage_error(
                f'cancel() expects a Computation, got {type(handle).__name__}',
                code=ErrorCode.INVALID_TARGET,
                help_text='pass the handle returned by spawn/defer/delay',
            )
        if handle.is_finished():
            return
        result = handle.terminate()
        logger.debug('Cancelled', extra={'computation': handle.name})
        if is_err(result):
            self.dispatcher.report(result.err_value)

    def request_stop(self) -> None:
        """Make start() return at the next iteration boundary, keeping pending work."""
        self._stop_requested = True

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def start(self, entry: Optional[FnOrHandle] = None, *args: Any) -> LoopStats:
        """
        Run the loop until nothing is waiting or deferred.

        Each iteration samples the clock once, fires due waiting records and
        then drains the deferred queue. Blocks the caller for the whole run.

        Args:
            entry: Optional computation dispatched once with ``args`` before
                the first iteration
        """
        if self._looping or self.dispatcher.current is not None:
            raise usage_error(
                'start() called while the scheduler loop is already running',
                code=ErrorCode.LOOP_ALREADY_RUNNING,
                help_text='use spawn/defer/delay to add work from inside a computation',
            )

        self._looping = True
        self._stop_requested = False
        stats = LoopStats()
        failures_before = self.dispatcher.failures
        try:
            if entry is not None:
                self.dispatcher.dispatch(resolve_target(entry), *args)

            while self.has_pending() and not self._stop_requested:
                self.last_tick = self.clock()
                stats.iterations += 1
                stats.fired += self.waiting.drain_due(
                    self.last_tick, self.dispatcher.dispatch
                )
                stats.deferred_run += self.deferred.drain(self.dispatcher.dispatch)
                self._idle()
        finally:
            self._looping = False
            stats.failures = self.dispatcher.failures - failures_before

        if self._stop_requested:
            logger.info(
                f'Scheduler loop stopped on request with {len(self.waiting)} waiting, '
                f'{len(self.deferred)} deferred'
            )
        logger.debug(
            f'Scheduler loop finished: iterations={stats.iterations}, '
            f'fired={stats.fired}, deferred={stats.deferred_run}, '
            f'failures={stats.failures}'
        )
        return stats

    def _idle(self) -> None:
        """Sleep briefly when the only pending work is in the future."""
        if self.deferred or self._stop_requested:
            return
        max_sleep = self.config.idle_sleep_seconds
        if max_sleep <= 0:
            return
        deadline = self.waiting.next_deadline()
        if deadline is None:
            return
        remaining = deadline - self.last_tick
        if remaining > 0:
            self.sleep(min(max_sleep, remaining))
