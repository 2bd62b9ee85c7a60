"""tickloop - a single-threaded cooperative task scheduler"""

# Install Rust-style error handler on import
from .core.errors import install_error_handler as _install_error_handler

_install_error_handler()

from .core.scheduler import (
    Computation,
    DeferredQueue,
    Dispatcher,
    ExternalDelay,
    LoopStats,
    ResumeFailure,
    Scheduler,
    SelfWait,
    WaitingRegistry,
)
from .core.current import (
    cancel,
    defer,
    delay,
    get_default_scheduler,
    running,
    set_default_scheduler,
    spawn,
    start,
    wait,
)
from .core.models.config import SchedulerConfig
from .core.types.status import (
    ComputationStatus,
    ResumeErrorCode,
    COMPUTATION_TERMINAL_STATES,
)
from .core.errors import (
    ErrorCode,
    TickloopError,
    SchedulerUsageError,
    ConfigurationError,
    MultipleValidationErrors,
    ValidationReport,
)
from .core.exception_mapper import ExceptionMapper
from .core.types.result import Result, Ok, Err, is_ok, is_err

__all__ = [
    # Core
    'Scheduler',
    'SchedulerConfig',
    'Computation',
    'LoopStats',
    # Default scheduler
    'spawn',
    'defer',
    'delay',
    'wait',
    'cancel',
    'running',
    'start',
    'get_default_scheduler',
    'set_default_scheduler',
    # Engine parts
    'WaitingRegistry',
    'DeferredQueue',
    'Dispatcher',
    'SelfWait',
    'ExternalDelay',
    'ResumeFailure',
    # Status
    'ComputationStatus',
    'ResumeErrorCode',
    'COMPUTATION_TERMINAL_STATES',
    # Errors
    'ErrorCode',
    'TickloopError',
    'SchedulerUsageError',
    'ConfigurationError',
    'MultipleValidationErrors',
    'ValidationReport',
    'ExceptionMapper',
    # Result
    'Result',
    'Ok',
    'Err',
    'is_ok',
    'is_err',
]
