# tickloop/core/logging.py
import logging
import sys
from datetime import datetime
from typing import TextIO

from tickloop.core.errors import should_use_colors

# Level given to loggers created from now on; see set_default_level()
_default_level: int = logging.INFO

_RESET = '\033[0m'
_TIME_COLOR = '\033[94m'
_TEXT_COLOR = '\033[97m'
_LEVEL_COLORS = {
    'DEBUG': '\033[90m',
    'INFO': '\033[92m',
    'WARNING': '\033[93m',
    'ERROR': '\033[91m',
    'CRITICAL': '\033[1;91m',
}


class ColoredFormatter(logging.Formatter):
    """
    One line per record: ``[time] [component] [level] message``.

    A record logged with ``extra={'computation': name}`` is suffixed with the
    computation it concerns. Without ``use_colors`` the layout is the same,
    minus the ANSI codes.
    """

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def _paint(self, color: str, text: str) -> str:
        return f'{color}{text}{_RESET}' if self.use_colors else text

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')
        # 'tickloop.dispatcher' -> 'dispatcher'
        component = record.name.rsplit('.', 1)[-1]

        message = record.getMessage()
        computation = getattr(record, 'computation', None)
        if computation:
            message = f'{message} (in {computation})'

        level_color = _LEVEL_COLORS.get(record.levelname, _TEXT_COLOR)
        formatted = ' '.join(
            (
                self._paint(_TIME_COLOR, f'[{time_str}]'),
                self._paint(_TEXT_COLOR, f'[{component}]'.ljust(12)),
                self._paint(level_color, f'[{record.levelname}]'.ljust(10)),
                self._paint(_TEXT_COLOR, message),
            )
        )

        if record.exc_info:
            formatted += '\n' + self.formatException(record.exc_info)

        return formatted


def set_default_level(level: int) -> None:
    """Set the level of loggers created by later get_logger() calls."""
    global _default_level
    _default_level = level


def apply_level(level: int) -> None:
    """Set the default level and push it to every existing tickloop logger."""
    set_default_level(level)

    logging.getLogger('tickloop').setLevel(level)

    for name in logging.Logger.manager.loggerDict:
        if isinstance(name, str) and name.startswith('tickloop.'):
            lgr = logging.getLogger(name)
            lgr.setLevel(level)
            for handler in lgr.handlers:
                handler.setLevel(level)


def get_logger(component_name: str, stream: TextIO | None = None) -> logging.Logger:
    """
    Return the ``tickloop.<component_name>`` logger.

    The first call attaches a handler writing to ``stream`` (stdout by
    default), colored only when that stream is a terminal or
    TICKLOOP_FORCE_COLOR is set, and honoring NO_COLOR.
    """
    logger = logging.getLogger(f'tickloop.{component_name}')

    if not logger.handlers:
        stream = stream if stream is not None else sys.stdout
        handler = logging.StreamHandler(stream)
        handler.setFormatter(ColoredFormatter(use_colors=should_use_colors(stream)))
        handler.setLevel(_default_level)
        logger.addHandler(handler)
        logger.setLevel(_default_level)

        # Records stop here; the root logger never sees them twice
        logger.propagate = False

    return logger
