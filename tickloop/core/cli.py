# tickloop/core/cli.py
"""
CLI for running a program on the tickloop scheduler.

Entry point resolution:
1. User provides dotted module path: `tickloop run app.jobs:main`
2. User is responsible for PYTHONPATH / running from correct directory
3. Convenience: if cwd has pyproject.toml, we add cwd to sys.path
"""

import argparse
import os
import sys
from typing import Any, Callable, Optional, Sequence

from tickloop.core.current import set_default_scheduler
from tickloop.core.errors import ConfigurationError, ErrorCode, TickloopError
from tickloop.core.logging import apply_level, get_logger
from tickloop.core.models.config import CLOCKS, LOG_LEVELS, SchedulerConfig
from tickloop.core.scheduler import Scheduler
from tickloop.core.utils.imports import (
    import_file_path,
    import_module_path,
    is_file_path,
    setup_sys_path_from_cwd,
)

DEFAULT_ENTRY_ATTR = 'main'


def parse_locator(locator: str) -> tuple[str, str]:
    """
    Parse an entry locator into (module_path, attribute_name).

    Formats:
    - "app.jobs:main" -> ("app.jobs", "main")
    - "app.jobs" -> ("app.jobs", "main")
    - "/path/to/file.py:run" -> ("/path/to/file.py", "run")
    """
    if ':' in locator:
        module_part, attr = locator.rsplit(':', 1)
        if not module_part or not attr:
            raise ConfigurationError(
                message=f"invalid entry locator: '{locator}'",
                code=ErrorCode.CLI_INVALID_ARGS,
                help_text='use module.path:function or path/to/file.py:function',
            )
        return (module_part, attr)
    return (locator, DEFAULT_ENTRY_ATTR)


def resolve_entry(locator: str) -> Callable[..., Any]:
    """Import the module named by ``locator`` and return its entry callable."""
    logger = get_logger('cli')

    project_root = setup_sys_path_from_cwd()
    if project_root:
        logger.info(f'Added project root to sys.path: {project_root}')

    module_path, attr_name = parse_locator(locator)

    if is_file_path(module_path):
        if not module_path.endswith('.py'):
            module_path += '.py'
        module = import_file_path(os.path.realpath(module_path))
    else:
        try:
            module = import_module_path(module_path)
        except ModuleNotFoundError as e:
            raise ConfigurationError(
                message=f'module not found: {module_path}',
                code=ErrorCode.CLI_INVALID_ENTRY,
                notes=[str(e), f'sys.path: {sys.path[:5]}...'],
                help_text=(
                    'ensure you are running from the correct directory\n'
                    'or set PYTHONPATH to include your project root'
                ),
            )

    entry = getattr(module, attr_name, None)
    if entry is None:
        raise ConfigurationError(
            message=f"module '{module.__name__}' has no attribute '{attr_name}'",
            code=ErrorCode.CLI_INVALID_ENTRY,
            help_text='name the entry point explicitly: module.path:function',
        )
    if not callable(entry):
        raise ConfigurationError(
            message=f"'{attr_name}' in module '{module.__name__}' is not callable",
            code=ErrorCode.CLI_INVALID_ENTRY,
            notes=[f'got {type(entry).__name__}'],
        )

    logger.info(f"Resolved entry point '{attr_name}' from {module.__name__}")
    return entry


def run_command(args: argparse.Namespace) -> int:
    """Handle run command. Returns the process exit code."""
    logger = get_logger('cli')

    overrides: dict[str, object] = {}
    if args.loglevel is not None:
        overrides['log_level'] = args.loglevel
    if args.clock is not None:
        overrides['clock'] = args.clock
    if args.idle_sleep is not None:
        overrides['idle_sleep_seconds'] = args.idle_sleep

    try:
        config = SchedulerConfig.from_env(**overrides)
        apply_level(config.level())
        entry = resolve_entry(args.entry)
    except TickloopError as e:
        logger.error(str(e))
        return 1
    except (ImportError, FileNotFoundError) as e:
        logger.error(f'Failed to load entry point: {e}')
        return 1

    config.log_config(logger)

    scheduler = Scheduler(config)
    set_default_scheduler(scheduler)
    stats = scheduler.start(entry, *args.args)

    print(
        f'done: {stats.iterations} iteration(s), {stats.fired} timed, '
        f'{stats.deferred_run} deferred, {stats.failures} failure(s)'
    )
    return 1 if stats.failures else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tickloop',
        description='tickloop - single-threaded cooperative scheduler',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run app/jobs.py:main until nothing is waiting or deferred
  tickloop run app.jobs:main

  # Using a file path and passing string arguments to the entry point
  tickloop run scripts/poll.py:run first second
""",
    )
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    run_parser = subparsers.add_parser(
        'run',
        help='Run an entry point on the scheduler loop',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    run_parser.add_argument(
        'entry',
        help='Entry point (e.g., app.jobs:main)',
    )
    run_parser.add_argument(
        'args',
        nargs='*',
        help='String arguments passed to the entry point',
    )
    run_parser.add_argument(
        '--loglevel',
        choices=list(LOG_LEVELS),
        default=None,
        type=str.upper,
        help='Logging level (default: TICKLOOP_LOG_LEVEL or INFO)',
    )
    run_parser.add_argument(
        '--clock',
        choices=sorted(CLOCKS),
        default=None,
        help='Time source (default: monotonic)',
    )
    run_parser.add_argument(
        '--idle-sleep',
        dest='idle_sleep',
        type=float,
        default=None,
        help='Maximum sleep in seconds between passes while only timers are pending',
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI entry point."""
    try:
        parser = build_parser()
        args = parser.parse_args(argv)

        match args.command:
            case 'run':
                sys.exit(run_command(args))
            case _:
                parser.print_help()
                sys.exit(1)
    except KeyboardInterrupt:
        print('\nInterrupted by user')
        sys.exit(0)


if __name__ == '__main__':
    main()
