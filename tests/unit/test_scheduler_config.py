"""Tests for SchedulerConfig validation, env loading and logging."""

from __future__ import annotations

import logging
import time
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from tickloop.core.errors import (
    ConfigurationError,
    ErrorCode,
    MultipleValidationErrors,
)
from tickloop.core.models.config import SchedulerConfig


class CustomError(Exception):
    pass


@pytest.mark.unit
class TestDefaults:
    """Tests for default values."""

    def test_defaults(self) -> None:
        config = SchedulerConfig()

        assert config.clock == 'monotonic'
        assert config.idle_sleep_seconds == 0.001
        assert config.log_level == 'INFO'
        assert config.exception_mapper == {}
        assert config.default_unhandled_error_code == 'UNHANDLED_EXCEPTION'
        assert config.clock_fn() is time.monotonic
        assert config.level() == logging.INFO

    def test_frozen(self) -> None:
        config = SchedulerConfig()
        with pytest.raises(ValidationError):
            config.clock = 'wall'  # type: ignore[misc]

    def test_zero_idle_sleep_allowed(self) -> None:
        assert SchedulerConfig(idle_sleep_seconds=0).idle_sleep_seconds == 0

    def test_log_level_case_insensitive(self) -> None:
        assert SchedulerConfig(log_level='debug').level() == logging.DEBUG


@pytest.mark.unit
class TestValidation:
    """Tests for collected validation errors."""

    def test_unknown_clock(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            SchedulerConfig(clock='sundial')

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_CLOCK
        assert 'sundial' in exc_info.value.message

    def test_negative_idle_sleep(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            SchedulerConfig(idle_sleep_seconds=-1)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_IDLE_SLEEP
        assert exc_info.value.notes == ['got idle_sleep_seconds=-1.0']

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            SchedulerConfig(log_level='chatty')

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_LOG_LEVEL

    def test_invalid_mapper_value(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            SchedulerConfig(exception_mapper={CustomError: 'CustomError'})

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_EXCEPTION_MAPPER

    def test_invalid_default_error_code(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            SchedulerConfig(default_unhandled_error_code='oops')

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_EXCEPTION_MAPPER

    def test_multiple_errors_collected(self) -> None:
        with pytest.raises(MultipleValidationErrors) as exc_info:
            SchedulerConfig(clock='sundial', idle_sleep_seconds=-1, log_level='chatty')

        report = exc_info.value.report
        codes = [e.code for e in report.errors]
        assert codes == [
            ErrorCode.CONFIG_INVALID_CLOCK,
            ErrorCode.CONFIG_INVALID_IDLE_SLEEP,
            ErrorCode.CONFIG_INVALID_LOG_LEVEL,
        ]
        assert 'aborting due to 3 previous errors' in str(exc_info.value)


@pytest.mark.unit
class TestFromEnv:
    """Tests for SchedulerConfig.from_env."""

    def test_reads_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv('TICKLOOP_CLOCK', 'wall')
        monkeypatch.setenv('TICKLOOP_IDLE_SLEEP', '0.5')
        monkeypatch.setenv('TICKLOOP_LOG_LEVEL', 'WARNING')

        config = SchedulerConfig.from_env()

        assert config.clock == 'wall'
        assert config.idle_sleep_seconds == 0.5
        assert config.log_level == 'WARNING'

    def test_overrides_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv('TICKLOOP_CLOCK', 'wall')

        config = SchedulerConfig.from_env(clock='monotonic')

        assert config.clock == 'monotonic'

    def test_missing_variables_use_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ('TICKLOOP_CLOCK', 'TICKLOOP_IDLE_SLEEP', 'TICKLOOP_LOG_LEVEL'):
            monkeypatch.delenv(name, raising=False)

        assert SchedulerConfig.from_env() == SchedulerConfig()

    def test_non_numeric_idle_sleep(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv('TICKLOOP_IDLE_SLEEP', 'fast')

        with pytest.raises(ConfigurationError) as exc_info:
            SchedulerConfig.from_env()

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_IDLE_SLEEP


@pytest.mark.unit
class TestLogConfig:
    """Tests for log_config formatting."""

    def test_log_config_summary(self) -> None:
        logger = MagicMock()
        config = SchedulerConfig(
            clock='wall',
            exception_mapper={CustomError: 'CUSTOM_FAILURE'},
            default_unhandled_error_code='CRASHED',
        )

        config.log_config(logger)

        logger.info.assert_called_once()
        formatted = logger.info.call_args.args[1]
        assert 'clock: wall' in formatted
        assert 'exception_mapper: 1 mapping(s)' in formatted
        assert 'default_unhandled_error_code: CRASHED' in formatted

    def test_default_code_omitted_from_summary(self) -> None:
        formatted = SchedulerConfig()._format_for_logging()
        assert 'default_unhandled_error_code' not in formatted
        assert 'idle_sleep: 0.001s' in formatted
