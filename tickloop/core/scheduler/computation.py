# tickloop/core/scheduler/computation.py
from __future__ import annotations
import inspect
from typing import Any, Callable, Generator, Optional
from tickloop.core.errors import ErrorCode, usage_error
from tickloop.core.scheduler.result_types import ResumeFailure, ResumeResult
from tickloop.core.types.result import Err, Ok, is_ok
from tickloop.core.types.status import ComputationStatus, ResumeErrorCode


def _payload(args: tuple[Any, ...]) -> Any:
    """Collapse resumption arguments into the value sent to a suspended body."""
    if not args:
        return None
    if len(args) == 1:
        return args[0]
    return args


class Computation:
    """
    A resumable unit of work, identified by object identity.

    The body is whatever calling ``fn`` produces:
    - a generator: every ``yield`` (usually ``yield from wait(...)``) is a
      suspension point, and later resumptions send their payload into it
    - anything else: the call itself is the whole computation, which finishes
      during its first resumption

    Resumption never raises for errors in user code; see ``resume``.
    """

    def __init__(self, fn: Callable[..., Any], name: Optional[str] = None):
        self.fn = fn
        self.name = name or getattr(fn, '__qualname__', None) or repr(fn)
        self.status = ComputationStatus.CREATED
        self.result: Any = None
        self._gen: Optional[Generator[Any, Any, Any]] = None
        # Set by wait() and cleared once the suspension is driven.
        self.pending_wait: Optional[Generator[None, Any, Any]] = None

    @classmethod
    def create(cls, fn: Callable[..., Any], name: Optional[str] = None) -> Computation:
        """Wrap a callable in a fresh, not-yet-started computation."""
        if inspect.isgenerator(fn):
            raise usage_error(
                'cannot create a computation from a generator object',
                code=ErrorCode.INVALID_TARGET,
                notes=[f'got generator {getattr(fn, "__qualname__", fn)!r}'],
                help_text='pass the generator function itself, not the result of calling it',
            )
        if not callable(fn):
            raise usage_error(
                f'expected a callable or Computation, got {type(fn).__name__}',
                code=ErrorCode.INVALID_TARGET,
                help_text='pass a function or a handle returned by spawn/defer/delay',
            )
        return cls(fn, name=name)

    def __repr__(self) -> str:
        return f'<Computation {self.name} {self.status.value}>'

    def is_finished(self) -> bool:
        return self.status.is_terminal

    def resume(self, *args: Any) -> ResumeResult:
        """
        Resume the computation with ``args`` as its resumption value.

        The first resumption calls ``fn(*args)``. Later ones send the payload
        into the suspended generator: nothing -> None, one value -> the value,
        several -> a tuple.

        A wait() created during this step but never driven with ``yield from``
        fails the computation with WAIT_NOT_DRIVEN.

        Returns:
            Ok(None) when the computation suspended or finished,
            Err(ResumeFailure) when it raised or could not be resumed
        """
        if self.is_finished():
            return Err(
                ResumeFailure(
                    code=ResumeErrorCode.RESUME_DEAD,
                    message=f'cannot resume finished computation {self.name} '
                    f'({self.status.value})',
                    computation=self,
                )
            )
        if self.status is ComputationStatus.RUNNING:
            return Err(
                ResumeFailure(
                    code=ResumeErrorCode.RESUME_RUNNING,
                    message=f'cannot resume running computation {self.name}',
                    computation=self,
                )
            )

        first = self.status is ComputationStatus.CREATED
        self.status = ComputationStatus.RUNNING
        if first:
            result = self._step(self._start, args)
        else:
            result = self._step(self._send, _payload(args))

        if self.pending_wait is not None:
            self.pending_wait = None
            if is_ok(result) and self.status is not ComputationStatus.CANCELLED:
                result = self._fail_undriven_wait()
        return result

    def terminate(self) -> ResumeResult:
        """
        Stop the computation for good. No-op if it already finished.

        A suspended generator is closed, so its ``finally`` blocks run. A
        computation terminating itself is closed once it yields back.

        Returns:
            Ok(None), or Err(ResumeFailure) when closing the generator raised
            (a ``finally`` block raised, or the body yielded again on exit)
        """
        if self.is_finished():
            return Ok(None)
        was_running = self.status is ComputationStatus.RUNNING
        self.status = ComputationStatus.CANCELLED
        if was_running:
            return Ok(None)
        return self._close_cancelled()

    def _start(self, args: tuple[Any, ...]) -> None:
        body = self.fn(*args)
        if not inspect.isgenerator(body):
            raise StopIteration(body)
        self._gen = body
        body.send(None)

    def _send(self, value: Any) -> None:
        assert self._gen is not None
        self._gen.send(value)

    def _throw(self, exc: BaseException) -> None:
        assert self._gen is not None
        self._gen.throw(exc)

    def _step(self, action: Callable[[Any], None], arg: Any) -> ResumeResult:
        """Run one slice of the body and settle the status it leaves behind."""
        try:
            action(arg)
        except StopIteration as stop:
            self._finish(stop.value)
            return Ok(None)
        except Exception as exc:
            self._gen = None
            if self.status is ComputationStatus.RUNNING:
                self.status = ComputationStatus.FAILED
            return self._raised(exc)

        if self.status is ComputationStatus.CANCELLED:
            # Cancelled itself while running; the generator can be closed now.
            return self._close_cancelled()
        self.status = ComputationStatus.SUSPENDED
        return Ok(None)

    def _fail_undriven_wait(self) -> ResumeResult:
        """Turn a wait() that was created but never driven into a failure."""
        error = usage_error(
            f'wait() in computation {self.name} was not driven with yield from',
            code=ErrorCode.WAIT_NOT_DRIVEN,
            notes=['nothing was registered and the computation did not suspend'],
            help_text='write  elapsed = yield from scheduler.wait(duration)',
        )
        if self.status is ComputationStatus.SUSPENDED:
            # Raised at the suspension point, as if the body had raised it.
            self.status = ComputationStatus.RUNNING
            return self._step(self._throw, error)
        if self.status is ComputationStatus.COMPLETED:
            self.status = ComputationStatus.FAILED
            self.result = None
        return self._raised(error)

    def _raised(self, exc: Exception, during: str = '') -> ResumeResult:
        return Err(
            ResumeFailure(
                code=ResumeErrorCode.RAISED,
                message=f'computation {self.name} raised{during} '
                f'{type(exc).__name__}: {exc}',
                computation=self,
                exception=exc,
            )
        )

    def _close_cancelled(self) -> ResumeResult:
        try:
            self._close()
        except Exception as exc:
            return self._raised(exc, during=' during cancellation')
        return Ok(None)

    def _finish(self, value: Any) -> None:
        self._gen = None
        self.result = value
        if self.status is ComputationStatus.RUNNING:
            self.status = ComputationStatus.COMPLETED

    def _close(self) -> None:
        gen, self._gen = self._gen, None
        if gen is not None:
            gen.close()


FnOrHandle = Computation | Callable[..., Any]


def resolve_target(target: FnOrHandle) -> Computation:
    """Return ``target`` if it is already a handle, else wrap it in a new one."""
    if isinstance(target, Computation):
        return target
    return Computation.create(target)
