# tickloop/core/scheduler/dispatcher.py
from __future__ import annotations
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Callable, Optional
from tickloop.core.defaults import DEFAULT_UNHANDLED_ERROR_CODE
from tickloop.core.exception_mapper import resolve_exception_error_code
from tickloop.core.logging import get_logger
from tickloop.core.scheduler.computation import Computation
from tickloop.core.scheduler.result_types import ResumeFailure
from tickloop.core.types.result import is_err

logger = get_logger('dispatcher')

ErrorSink = Callable[[ResumeFailure], None]


def log_failure(failure: ResumeFailure) -> None:
    """Default error sink: one ERROR record per failed resumption."""
    exc = failure.exception
    exc_info = (type(exc), exc, exc.__traceback__) if exc is not None else None
    code = f' [{failure.error_code}]' if failure.error_code else ''
    logger.error(
        f'{failure.message}{code}',
        exc_info=exc_info,
        extra={'computation': failure.computation.name},
    )


class Dispatcher:
    """
    Resumes computations and isolates their failures.

    Keeps the stack of computations currently executing so the scheduler can
    tell which computation called wait(). A failed resumption is reported
    once through the error sink and never propagates to the caller.
    """

    def __init__(
        self,
        error_sink: Optional[ErrorSink] = None,
        exception_mapper: Optional[Mapping[type[BaseException], str]] = None,
        default_error_code: str = DEFAULT_UNHANDLED_ERROR_CODE,
    ):
        self.error_sink: ErrorSink = error_sink or log_failure
        self.exception_mapper = exception_mapper
        self.default_error_code = default_error_code
        self.failures = 0
        self._stack: list[Computation] = []

    @property
    def current(self) -> Optional[Computation]:
        """The computation executing right now, or None outside any."""
        return self._stack[-1] if self._stack else None

    def dispatch(self, handle: Computation, *args: Any) -> None:
        self._stack.append(handle)
        try:
            result = handle.resume(*args)
        finally:
            self._stack.pop()
        if is_err(result):
            self.report(result.err_value)

    def report(self, failure: ResumeFailure) -> None:
        if failure.exception is not None:
            failure = replace(
                failure,
                error_code=resolve_exception_error_code(
                    failure.exception,
                    self.exception_mapper,
                    self.default_error_code,
                ),
            )
        self.failures += 1
        try:
            self.error_sink(failure)
        except Exception as e:
            logger.error(
                f'Error sink failed while reporting {failure.computation!r}: {e}',
                exc_info=True,
            )
