"""Rust-style error display for tickloop misuse and configuration errors."""

from __future__ import annotations

import inspect
import linecache
import os
import sys
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Absolute path to the tickloop package directory.
# Used by _find_user_frame to distinguish library frames from user code.
_TICKLOOP_PKG_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class ErrorCode(str, Enum):
    """Error codes for misuse and configuration errors.

    Organized by category:
    - E100-E199: Scheduler usage errors
    - E200-E299: Config/CLI errors
    """

    # Scheduler usage (E100-E199)
    WAIT_OUTSIDE_COMPUTATION = 'E100'
    INVALID_DURATION = 'E101'
    INVALID_TARGET = 'E102'
    LOOP_ALREADY_RUNNING = 'E103'
    WAIT_NOT_DRIVEN = 'E104'

    # Config/CLI (E200-E299)
    CONFIG_INVALID_CLOCK = 'E200'
    CONFIG_INVALID_IDLE_SLEEP = 'E201'
    CONFIG_INVALID_LOG_LEVEL = 'E202'
    CONFIG_INVALID_EXCEPTION_MAPPER = 'E203'
    CLI_INVALID_ARGS = 'E204'
    CLI_INVALID_ENTRY = 'E205'


class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    DIM = '\033[2m'


class _NoColors:
    """No-op color codes for non-TTY output."""

    RESET = ''
    BOLD = ''
    RED = ''
    BLUE = ''
    CYAN = ''
    GREEN = ''
    YELLOW = ''
    DIM = ''


def _env_flag(name: str) -> bool:
    return os.environ.get(name, '').lower() in ('1', 'true', 'yes')


def should_use_colors(stream: Any = None) -> bool:
    """Whether output written to ``stream`` (stderr by default) gets ANSI colors."""
    if _env_flag('TICKLOOP_FORCE_COLOR'):
        return True

    # NO_COLOR standard (https://no-color.org/)
    if os.environ.get('NO_COLOR') is not None:
        return False

    if stream is None:
        stream = sys.stderr
    return hasattr(stream, 'isatty') and stream.isatty()


def _should_show_verbose() -> bool:
    """Determine if verbose output (full traceback) should be shown."""
    return _env_flag('TICKLOOP_VERBOSE')


def _should_use_plain_errors() -> bool:
    """Determine if plain Python errors should be used instead of Rust-style."""
    return _env_flag('TICKLOOP_PLAIN_ERRORS')


@dataclass
class SourceLocation:
    """Source code location information."""

    file: str
    line: int

    @classmethod
    def from_frame(cls, frame: Any) -> SourceLocation:
        """Create SourceLocation from a frame object."""
        return cls(
            file=frame.f_code.co_filename,
            line=frame.f_lineno,
        )

    def get_source_line(self) -> str | None:
        """Read the source line from the file."""
        try:
            line = linecache.getline(self.file, self.line)
            return line.rstrip('\n') if line else None
        except Exception:
            return None

    def format_short(self) -> str:
        """Format as 'file:line'."""
        return f'{self.file}:{self.line}'


@dataclass
class TickloopError(Exception):
    """Base exception for tickloop misuse and configuration errors.

    Provides Rust-style error formatting with:
    - Error code and category
    - Source location with code snippet
    - Notes and help text
    """

    message: str
    code: ErrorCode | None = None
    location: SourceLocation | None = None
    notes: list[str] = field(default_factory=lambda: [])
    help_text: str | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

        # Auto-detect location from call stack if not provided
        if self.location is None:
            user_frame = _find_user_frame()
            if user_frame is not None:
                self.location = SourceLocation.from_frame(user_frame)

    def format_rust_style(self, use_colors: bool | None = None) -> str:
        """Format the error in Rust style."""
        if use_colors is None:
            use_colors = should_use_colors()

        c = _Colors if use_colors else _NoColors
        lines: list[str] = ['']

        # error[E100]: message
        code_part = f'[{self.code.value}]' if self.code else ''
        lines.append(f'{c.BOLD}{c.RED}error{code_part}:{c.RESET} {self.message}')

        if self.location:
            source_line = self.location.get_source_line()

            lines.append(
                f'  {c.BLUE}-->{c.RESET} {c.CYAN}{self.location.format_short()}{c.RESET}'
            )

            if source_line:
                line_num = str(self.location.line)
                padding = ' ' * len(line_num)

                lines.append(f'   {c.BLUE}{padding}|{c.RESET}')
                lines.append(f'   {c.BLUE}{line_num}|{c.RESET} {source_line}')

                stripped = source_line.lstrip()
                indent = len(source_line) - len(stripped)
                underline = ' ' * indent + '^' * len(stripped)
                lines.append(
                    f'   {c.BLUE}{padding}|{c.RESET} {c.RED}{underline}{c.RESET}'
                )

        for note in self.notes:
            note_lines = note.split('\n')
            lines.append(
                f'   {c.BLUE}={c.RESET} {c.BOLD}{c.BLUE}note{c.RESET}: {note_lines[0]}'
            )
            for note_line in note_lines[1:]:
                lines.append(f'          {note_line}')

        if self.help_text:
            lines.append('')
            lines.append(f'   {c.BLUE}={c.RESET} {c.BOLD}{c.GREEN}help{c.RESET}:')
            for help_line in self.help_text.split('\n'):
                lines.append(f'        {help_line}')

        return '\n'.join(lines)

    def __str__(self) -> str:
        """Plain text (no ANSI colors), safe for logs and non-terminal contexts."""
        return self.format_rust_style(use_colors=False)


_original_excepthook = sys.excepthook


def _tickloop_excepthook(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_tb: Any,
) -> None:
    """Custom exception hook for TickloopError exceptions."""
    if _should_use_plain_errors():
        _original_excepthook(exc_type, exc_value, exc_tb)
        return

    if isinstance(exc_value, TickloopError):
        print(exc_value.format_rust_style(), file=sys.stderr)

        if _should_show_verbose():
            print(file=sys.stderr)
            c = _Colors if should_use_colors() else _NoColors
            print(
                f'{c.DIM}Full traceback (TICKLOOP_VERBOSE=1):{c.RESET}',
                file=sys.stderr,
            )
            traceback.print_exception(exc_type, exc_value, exc_tb, file=sys.stderr)
    else:
        _original_excepthook(exc_type, exc_value, exc_tb)


def install_error_handler() -> None:
    """Install the custom exception hook for Rust-style error display."""
    sys.excepthook = _tickloop_excepthook


def uninstall_error_handler() -> None:
    """Restore the original exception hook."""
    sys.excepthook = _original_excepthook


# =============================================================================
# Specific Error Classes
# =============================================================================


@dataclass
class SchedulerUsageError(TickloopError):
    """Raised when the scheduler API is used outside the cooperative model."""

    pass


@dataclass
class ConfigurationError(TickloopError):
    """Raised when scheduler configuration or CLI arguments are invalid."""

    pass


# =============================================================================
# Phase-Gated Error Collection
# =============================================================================


class ValidationReport:
    """Collects multiple TickloopError instances within a validation phase."""

    def __init__(self, phase_name: str) -> None:
        self.phase_name: str = phase_name
        self.errors: list[TickloopError] = []

    def add(self, error: TickloopError) -> None:
        self.errors.append(error)

    def format_rust_style(self, use_colors: bool | None = None) -> str:
        """Format all collected errors, then append an aborting summary."""
        if use_colors is None:
            use_colors = should_use_colors()

        c = _Colors if use_colors else _NoColors
        parts = [error.format_rust_style(use_colors=use_colors) for error in self.errors]
        parts.append(
            f'\n{c.BOLD}{c.RED}error{c.RESET}: aborting due to '
            f'{len(self.errors)} previous errors'
        )
        return '\n'.join(parts)

    def __str__(self) -> str:
        return self.format_rust_style(use_colors=False)


@dataclass
class MultipleValidationErrors(TickloopError):
    """Wraps a ValidationReport containing 2+ errors."""

    report: ValidationReport = field(default_factory=lambda: ValidationReport(''))

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f'aborting due to {len(self.report.errors)} previous errors'
        # Location is per-error in the report
        super(TickloopError, self).__init__(self.message)

    def format_rust_style(self, use_colors: bool | None = None) -> str:
        return self.report.format_rust_style(use_colors=use_colors)

    def __str__(self) -> str:
        return self.format_rust_style(use_colors=False)


def raise_collected(report: ValidationReport) -> None:
    """Raise collected errors.

    - 0 errors: no-op
    - 1 error: raises the original error
    - 2+ errors: raises MultipleValidationErrors wrapping the report
    """
    count = len(report.errors)
    if count == 0:
        return
    if count == 1:
        raise report.errors[0]
    raise MultipleValidationErrors(
        message=f'aborting due to {count} previous errors',
        report=report,
    )


def _find_user_frame() -> Any | None:
    """Find the first frame outside of tickloop internals."""
    frame = inspect.currentframe()

    while frame is not None:
        filename = frame.f_code.co_filename

        # Skip synthetic frames (e.g., <string>, <module>)
        if filename.startswith('<'):
            frame = frame.f_back
            continue

        if not filename.startswith(_TICKLOOP_PKG_DIR) and '/site-packages/' not in filename:
            return frame

        frame = frame.f_back

    return None


def usage_error(
    message: str,
    *,
    code: ErrorCode,
    notes: list[str] | None = None,
    help_text: str | None = None,
) -> SchedulerUsageError:
    """Create a SchedulerUsageError pointing at the calling user code."""
    return SchedulerUsageError(
        message=message,
        code=code,
        notes=notes or [],
        help_text=help_text,
    )
