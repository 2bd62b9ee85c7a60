# tickloop/core/models/config.py
from __future__ import annotations
import logging
import os
import time
from typing import Callable, Optional, Self
from pydantic import BaseModel, ConfigDict, Field, model_validator
from tickloop.core.defaults import (
    DEFAULT_CLOCK,
    DEFAULT_IDLE_SLEEP_SECONDS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_UNHANDLED_ERROR_CODE,
)
from tickloop.core.errors import (
    ConfigurationError,
    ErrorCode,
    ValidationReport,
    raise_collected,
)
from tickloop.core.exception_mapper import (
    ExceptionMapper,
    validate_error_code_string,
    validate_exception_mapper,
)

CLOCKS: dict[str, Callable[[], float]] = {
    'monotonic': time.monotonic,
    'wall': time.time,
}

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class SchedulerConfig(BaseModel):
    """
    Configuration for a Scheduler instance.

    Fields:
    - clock: Time source name ('monotonic' or 'wall'), read once per loop iteration
    - idle_sleep_seconds: Longest sleep between passes when only future deadlines
      remain; 0 keeps the loop spinning
    - log_level: Default level for tickloop loggers
    - exception_mapper: Exact exception class -> error code for failure reports
    - default_unhandled_error_code: Code used when the mapper has no entry
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    clock: str = Field(default=DEFAULT_CLOCK, description='Time source name')
    idle_sleep_seconds: float = Field(
        default=DEFAULT_IDLE_SLEEP_SECONDS,
        description='Maximum sleep between loop passes while waiting on deadlines',
    )
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description='Default log level')
    exception_mapper: ExceptionMapper = Field(
        default_factory=lambda: ExceptionMapper(),
    )
    default_unhandled_error_code: str = DEFAULT_UNHANDLED_ERROR_CODE

    @model_validator(mode='after')
    def validate_config(self) -> Self:
        """Collects all independent errors and raises them together."""
        report = ValidationReport('config')

        if self.clock not in CLOCKS:
            report.add(
                ConfigurationError(
                    message=f"unknown clock '{self.clock}'",
                    code=ErrorCode.CONFIG_INVALID_CLOCK,
                    notes=[f'available clocks: {sorted(CLOCKS)}'],
                    help_text="use clock='monotonic' (default) or clock='wall'",
                )
            )

        if self.idle_sleep_seconds < 0:
            report.add(
                ConfigurationError(
                    message='idle_sleep_seconds must be non-negative',
                    code=ErrorCode.CONFIG_INVALID_IDLE_SLEEP,
                    notes=[f'got idle_sleep_seconds={self.idle_sleep_seconds}'],
                    help_text='use 0 to disable sleeping or a small positive number of seconds',
                )
            )

        if self.log_level.upper() not in LOG_LEVELS:
            report.add(
                ConfigurationError(
                    message=f"unknown log level '{self.log_level}'",
                    code=ErrorCode.CONFIG_INVALID_LOG_LEVEL,
                    help_text=f'use one of: {", ".join(LOG_LEVELS)}',
                )
            )

        for msg in validate_exception_mapper(self.exception_mapper):
            report.add(
                ConfigurationError(
                    message=msg,
                    code=ErrorCode.CONFIG_INVALID_EXCEPTION_MAPPER,
                    notes=['check exception_mapper keys and values'],
                    help_text='keys must be BaseException subclasses, values must be UPPER_SNAKE_CASE error codes',
                )
            )

        default_code_error = validate_error_code_string(
            self.default_unhandled_error_code,
            field_name='default_unhandled_error_code',
        )
        if default_code_error is not None:
            report.add(
                ConfigurationError(
                    message=default_code_error,
                    code=ErrorCode.CONFIG_INVALID_EXCEPTION_MAPPER,
                    help_text='use UPPER_SNAKE_CASE error codes',
                )
            )

        raise_collected(report)
        return self

    @classmethod
    def from_env(cls, **overrides: object) -> SchedulerConfig:
        """Build a config from TICKLOOP_* environment variables.

        Explicit keyword overrides win over the environment.
        """
        values: dict[str, object] = {}
        if (clock := os.getenv('TICKLOOP_CLOCK')) is not None:
            values['clock'] = clock
        if (idle := os.getenv('TICKLOOP_IDLE_SLEEP')) is not None:
            try:
                values['idle_sleep_seconds'] = float(idle)
            except ValueError:
                raise ConfigurationError(
                    message=f"TICKLOOP_IDLE_SLEEP is not a number: '{idle}'",
                    code=ErrorCode.CONFIG_INVALID_IDLE_SLEEP,
                    help_text='set TICKLOOP_IDLE_SLEEP to seconds, e.g. 0.001',
                )
        if (level := os.getenv('TICKLOOP_LOG_LEVEL')) is not None:
            values['log_level'] = level
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]

    def clock_fn(self) -> Callable[[], float]:
        return CLOCKS[self.clock]

    def level(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def log_config(self, logger: Optional[logging.Logger] = None) -> None:
        """
        Log the SchedulerConfig in a human-readable format.

        Args:
            logger: Logger instance to use. If None, uses root logger.
        """
        if logger is None:
            logger = logging.getLogger()
        logger.info('SchedulerConfig:\n%s', self._format_for_logging())

    def _format_for_logging(self) -> str:
        lines: list[str] = [
            f'  clock: {self.clock}',
            f'  idle_sleep: {self.idle_sleep_seconds}s',
            f'  log_level: {self.log_level.upper()}',
        ]
        if self.exception_mapper:
            lines.append(f'  exception_mapper: {len(self.exception_mapper)} mapping(s)')
        if self.default_unhandled_error_code != DEFAULT_UNHANDLED_ERROR_CODE:
            lines.append(
                f'  default_unhandled_error_code: {self.default_unhandled_error_code}'
            )
        return '\n'.join(lines)
