# tickloop/core/scheduler/__init__.py
"""
Cooperative scheduler engine.

Main components:
- Scheduler: owns the scheduling state and runs the loop
- Computation: resumable unit of work backed by a generator
- WaitingRegistry: timed resumptions (wait/delay)
- DeferredQueue: end-of-cycle resumptions (defer)
- Dispatcher: resumes computations and reports their failures

Example usage:
    from tickloop.core.scheduler import Scheduler

    scheduler = Scheduler()
    scheduler.start(main)
"""

from tickloop.core.scheduler.computation import Computation, FnOrHandle, resolve_target
from tickloop.core.scheduler.deferred import DeferredEntry, DeferredQueue
from tickloop.core.scheduler.dispatcher import Dispatcher, ErrorSink, log_failure
from tickloop.core.scheduler.registry import (
    ExternalDelay,
    ResumptionRecord,
    SelfWait,
    WaitingRegistry,
)
from tickloop.core.scheduler.result_types import ResumeFailure, ResumeResult
from tickloop.core.scheduler.service import LoopStats, Scheduler

__all__ = [
    'Computation',
    'FnOrHandle',
    'resolve_target',
    'DeferredEntry',
    'DeferredQueue',
    'Dispatcher',
    'ErrorSink',
    'log_failure',
    'ExternalDelay',
    'ResumptionRecord',
    'SelfWait',
    'WaitingRegistry',
    'ResumeFailure',
    'ResumeResult',
    'LoopStats',
    'Scheduler',
]
