"""Shared default constants for the tickloop library."""

# Time source used when no clock is configured or injected.
DEFAULT_CLOCK: str = 'monotonic'

# Upper bound on a single idle sleep between loop passes.
# Only applies when nothing is deferred and the next deadline is in the future.
DEFAULT_IDLE_SLEEP_SECONDS: float = 0.001  # 1 millisecond

DEFAULT_LOG_LEVEL: str = 'INFO'

DEFAULT_UNHANDLED_ERROR_CODE: str = 'UNHANDLED_EXCEPTION'

# wait() with no argument fires on the very next loop pass.
DEFAULT_WAIT_SECONDS: float = 0.0
