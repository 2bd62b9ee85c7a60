"""Typed failure payload for resuming a computation.

Resumption failures are values, not exceptions: ``Computation.resume`` returns
``ResumeResult`` and never raises for errors coming out of user code (only
``BaseException`` subclasses such as ``KeyboardInterrupt`` escape). The
dispatcher turns every ``Err`` into exactly one report on the error sink.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from tickloop.core.types.result import Result
from tickloop.core.types.status import ResumeErrorCode

if TYPE_CHECKING:
    from tickloop.core.scheduler.computation import Computation


@dataclass(slots=True, frozen=True)
class ResumeFailure:
    """Error payload carried inside Err(...) for a failed resumption.

    Fields:
        code: why the resumption failed
        message: human-readable description
        computation: the handle that was being resumed
        exception: the original cause (if any)
        error_code: classification from the exception mapper, set on report
    """

    code: ResumeErrorCode
    message: str
    computation: Computation
    exception: BaseException | None = None
    error_code: str | None = None


ResumeResult: TypeAlias = Result[None, ResumeFailure]
