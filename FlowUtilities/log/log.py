"""Root logger configuration for FlowUtilities.

Log records go to stdout and to an in-memory :class:`TankHandler` so the host can
show recent plugin activity. Qt messages are routed through the same handlers.
"""
import collections
import logging
import sys
from typing import Deque, Optional, Tuple

from PySide6.QtCore import QtMsgType, qInstallMessageHandler

LOG_LEVEL = logging.DEBUG
LOG_FORMAT = '[%(asctime)s] <%(module)s> %(levelname)s:  %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'

# Oldest records are dropped past this
TANK_SIZE = 5000

VALID_LEVELS: Tuple[int, ...] = (
    logging.DEBUG,
    logging.INFO,
    logging.WARNING,
    logging.ERROR,
    logging.CRITICAL,
)


def set_logging_level(level: int) -> None:
    """
    Sets the logging level for the root logger and all of its handlers.

    Args:
        level (int): The logging level to set. Should be one of the standard logging levels.

    Raises:
        ValueError: If level is not an int or not a standard logging level.
    """
    if not isinstance(level, int):
        raise ValueError('Logging level must be an integer.')
    if level not in VALID_LEVELS:
        raise ValueError('Invalid logging level. Use one of the standard logging levels, e.g., logging.DEBUG.')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def qt_message_handler(mode, context, message):
    """
    Converts Qt messages to standard Python logging.
    """
    logger = logging.getLogger('Qt')

    message = message.strip()

    if mode == QtMsgType.QtDebugMsg:
        logger.debug(message)
    elif mode == QtMsgType.QtInfoMsg:
        logger.info(message)
    elif mode == QtMsgType.QtWarningMsg:
        logger.warning(message)
    elif mode == QtMsgType.QtCriticalMsg:
        logger.error(message)
    elif mode == QtMsgType.QtFatalMsg:
        logger.critical(message)
        sys.exit(1)


def setup_logging(
        enable_stream_handler: bool = True,
        enable_qt_handler: bool = True,
        log_level: int = LOG_LEVEL,
) -> None:
    """
    Configures the root logger with the tank handler and, optionally, a stdout stream
    handler and the Qt message bridge.

    Args:
        enable_stream_handler (bool): Also log to stdout.
        enable_qt_handler (bool): Route Qt messages into Python logging.
        log_level (int): Level applied to the root logger and its handlers.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear all handlers to avoid formatting conflicts
    root_logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    if enable_stream_handler:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        stream_handler.setLevel(log_level)
        root_logger.addHandler(stream_handler)

    tank_handler = TankHandler()
    tank_handler.setFormatter(formatter)
    tank_handler.setLevel(log_level)
    root_logger.addHandler(tank_handler)

    if enable_qt_handler:
        qInstallMessageHandler(qt_message_handler)


def get_tank() -> Optional['TankHandler']:
    """Return the tank handler installed on the root logger, if any."""
    return next(
        (h for h in logging.getLogger().handlers if isinstance(h, TankHandler)),
        None
    )


class TankHandler(logging.Handler):
    """
    Custom logging handler that stores formatted log messages in an in-memory tank.

    Attributes:
        tank (deque[tuple[int, str]]): The most recent log levels and their formatted
            messages, at most max_records of them.
    """

    def __init__(self, max_records: int = TANK_SIZE):
        super().__init__()
        self.tank: Deque[Tuple[int, str]] = collections.deque(maxlen=max_records)

    def emit(self, record):
        """
        Converts a log record to a formatted message and stores it in the tank.

        Args:
            record (logging.LogRecord): The log record to be processed.
        """
        try:
            message = self.format(record)
            self.tank.append((record.levelno, message))
            if record.levelno >= logging.ERROR:
                from ..core.signals import signals
                signals.errorLogged.emit(message)
        except (Exception, KeyboardInterrupt):
            self.handleError(record)

    def get_logs(self, level=logging.NOTSET):
        """
        Returns the list of stored log messages filtered by a minimum logging level.

        Args:
            level (int, optional): The minimum logging level. Defaults to logging.NOTSET.

        Returns:
            list[str]: A list of formatted log messages with a level >= the specified level.
        """
        return [msg for lvl, msg in self.tank if lvl >= level]

    def clear_logs(self):
        """
        Clears all the stored log messages from the tank.
        """
        self.tank.clear()
