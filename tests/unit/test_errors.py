"""Unit tests for Rust-style error formatting."""

from __future__ import annotations

import inspect
import os
import sys
import tempfile
from collections.abc import Iterator
from io import StringIO
from unittest import mock

import pytest

from tickloop.core.errors import (
    ConfigurationError,
    ErrorCode,
    MultipleValidationErrors,
    SchedulerUsageError,
    SourceLocation,
    TickloopError,
    ValidationReport,
    _tickloop_excepthook,
    install_error_handler,
    raise_collected,
    should_use_colors,
    uninstall_error_handler,
    usage_error,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def clean_env() -> Iterator[None]:
    keys = ('TICKLOOP_PLAIN_ERRORS', 'TICKLOOP_VERBOSE', 'TICKLOOP_FORCE_COLOR', 'NO_COLOR')
    with mock.patch.dict(os.environ, {}, clear=False):
        for key in keys:
            os.environ.pop(key, None)
        os.environ['NO_COLOR'] = '1'
        yield


class _Tty(StringIO):
    def isatty(self) -> bool:
        return True


class TestShouldUseColors:
    """Tests for the color switch shared by errors and log output."""

    def test_no_color_disables(self, clean_env: None) -> None:
        assert should_use_colors(_Tty()) is False

    def test_force_color_wins_over_no_color(self, clean_env: None) -> None:
        os.environ['TICKLOOP_FORCE_COLOR'] = '1'
        assert should_use_colors(StringIO()) is True

    def test_follows_stream_tty(self, clean_env: None) -> None:
        os.environ.pop('NO_COLOR')
        assert should_use_colors(_Tty()) is True
        assert should_use_colors(StringIO()) is False

    def test_defaults_to_stderr(self, clean_env: None) -> None:
        os.environ.pop('NO_COLOR')
        with mock.patch('sys.stderr', _Tty()):
            assert should_use_colors() is True


# =============================================================================
# SourceLocation Tests
# =============================================================================


class TestSourceLocation:
    """Tests for SourceLocation."""

    def test_format_short(self) -> None:
        loc = SourceLocation(file='/path/to/file.py', line=42)
        assert loc.format_short() == '/path/to/file.py:42'

    def test_get_source_line_existing_file(self) -> None:
        with tempfile.NamedTemporaryFile(mode='w', suffix='.py', delete=False) as f:
            f.write('line 1\nline 2\nline 3\n')
            temp_path = f.name

        try:
            loc = SourceLocation(file=temp_path, line=2)
            assert loc.get_source_line() == 'line 2'
        finally:
            os.unlink(temp_path)

    def test_get_source_line_nonexistent_file(self) -> None:
        loc = SourceLocation(file='/nonexistent/path.py', line=1)
        assert loc.get_source_line() is None

    def test_from_frame(self) -> None:
        frame = inspect.currentframe()
        assert frame is not None
        loc = SourceLocation.from_frame(frame)
        assert loc.file.endswith('test_errors.py')
        assert loc.line > 0


# =============================================================================
# TickloopError Tests
# =============================================================================


class TestTickloopError:
    """Tests for TickloopError base class."""

    def test_basic_creation(self) -> None:
        err = TickloopError(message='something went wrong')
        assert err.message == 'something went wrong'
        assert err.code is None
        assert err.notes == []
        assert err.help_text is None
        assert err.args == ('something went wrong',)

    def test_auto_location_points_at_caller(self) -> None:
        err = TickloopError(message='auto-located')
        assert err.location is not None
        assert err.location.file.endswith('test_errors.py')

    def test_format_with_code_notes_and_help(self) -> None:
        err = TickloopError(
            message='wait() called outside a running computation',
            code=ErrorCode.WAIT_OUTSIDE_COMPUTATION,
            notes=['first line\nsecond line'],
            help_text='do this\nthen that',
        )
        formatted = err.format_rust_style(use_colors=False)

        assert 'error[E100]: wait() called outside a running computation' in formatted
        assert '= note: first line' in formatted
        assert '          second line' in formatted
        assert '= help:' in formatted
        assert '        then that' in formatted
        assert '\033[' not in formatted

    def test_format_with_location_snippet(self) -> None:
        err = TickloopError(message='bad')  # marker line
        formatted = err.format_rust_style(use_colors=False)

        assert '-->' in formatted
        assert 'marker line' in formatted
        assert '^' in formatted

    def test_format_with_colors(self) -> None:
        err = TickloopError(message='colored', code=ErrorCode.INVALID_TARGET)
        assert '\033[' in err.format_rust_style(use_colors=True)

    def test_str_is_plain(self) -> None:
        err = TickloopError(message='plain', code=ErrorCode.INVALID_DURATION)
        assert '\033[' not in str(err)
        assert 'error[E101]: plain' in str(err)


class TestUsageError:
    """Tests for usage_error helper."""

    def test_builds_scheduler_usage_error(self) -> None:
        err = usage_error(
            'invalid duration -1',
            code=ErrorCode.INVALID_DURATION,
            notes=['durations are seconds'],
            help_text='use wait(0)',
        )

        assert isinstance(err, SchedulerUsageError)
        assert isinstance(err, TickloopError)
        assert err.code == ErrorCode.INVALID_DURATION
        assert err.notes == ['durations are seconds']

    def test_notes_default_to_empty_list(self) -> None:
        err = usage_error('x', code=ErrorCode.INVALID_TARGET)
        assert err.notes == []


# =============================================================================
# ValidationReport / raise_collected
# =============================================================================


class TestRaiseCollected:
    """Tests for phase-gated error collection."""

    def test_no_errors_is_noop(self) -> None:
        raise_collected(ValidationReport('config'))

    def test_single_error_raised_as_is(self) -> None:
        report = ValidationReport('config')
        err = ConfigurationError(message='one', code=ErrorCode.CONFIG_INVALID_CLOCK)
        report.add(err)

        with pytest.raises(ConfigurationError) as exc_info:
            raise_collected(report)
        assert exc_info.value is err

    def test_multiple_errors_wrapped(self) -> None:
        report = ValidationReport('config')
        report.add(ConfigurationError(message='one'))
        report.add(ConfigurationError(message='two'))

        with pytest.raises(MultipleValidationErrors) as exc_info:
            raise_collected(report)

        text = str(exc_info.value)
        assert 'error: one' in text
        assert 'error: two' in text
        assert 'aborting due to 2 previous errors' in text
        assert exc_info.value.report is report


# =============================================================================
# Exception hook
# =============================================================================


class TestExceptHook:
    """Tests for the custom exception hook."""

    def test_install_and_uninstall(self) -> None:
        original = sys.excepthook
        try:
            install_error_handler()
            assert sys.excepthook is _tickloop_excepthook
            uninstall_error_handler()
            assert sys.excepthook is not _tickloop_excepthook
        finally:
            sys.excepthook = original

    def test_tickloop_error_printed_rust_style(self, clean_env: None) -> None:
        err = SchedulerUsageError(message='misuse', code=ErrorCode.LOOP_ALREADY_RUNNING)
        stderr = StringIO()

        with mock.patch('sys.stderr', stderr):
            _tickloop_excepthook(SchedulerUsageError, err, None)

        assert 'error[E103]: misuse' in stderr.getvalue()

    def test_plain_errors_env_uses_original_hook(self, clean_env: None) -> None:
        os.environ['TICKLOOP_PLAIN_ERRORS'] = '1'
        err = SchedulerUsageError(message='misuse')

        with mock.patch('tickloop.core.errors._original_excepthook') as original:
            _tickloop_excepthook(SchedulerUsageError, err, None)

        original.assert_called_once_with(SchedulerUsageError, err, None)

    def test_other_exceptions_use_original_hook(self, clean_env: None) -> None:
        exc = ValueError('not ours')

        with mock.patch('tickloop.core.errors._original_excepthook') as original:
            _tickloop_excepthook(ValueError, exc, None)

        original.assert_called_once_with(ValueError, exc, None)

    def test_verbose_adds_traceback(self, clean_env: None) -> None:
        os.environ['TICKLOOP_VERBOSE'] = '1'
        try:
            raise SchedulerUsageError(message='verbose misuse')
        except SchedulerUsageError as caught:
            err = caught
        stderr = StringIO()

        with mock.patch('sys.stderr', stderr):
            _tickloop_excepthook(SchedulerUsageError, err, err.__traceback__)

        output = stderr.getvalue()
        assert 'Full traceback (TICKLOOP_VERBOSE=1)' in output
        assert 'Traceback' in output
