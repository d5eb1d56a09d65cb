r"""Configuration of the log output of the ``deepstn`` package loggers.

Library modules obtain their logger with ``logging.getLogger(__name__)``. These are children of
the ``"deepstn"`` logger, whose level is set by :func:`configure_logging`, e.g., to ``DEBUG`` in
order to inspect the generation of sampling grids and the gradients of the affine parameters.

"""

from __future__ import annotations

from argparse import Namespace
from enum import Enum
import logging
from logging import Logger
from typing import Optional, Union


class LogLevel(str, Enum):
    r"""Enumeration of logging levels.

    Members compare equal to, and can be ordered with, other members, ``int`` logging levels
    such as ``logging.INFO``, and level names such as ``"info"``.

    """

    NOTSET = "NOTSET"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_arg(cls, arg: Union[LogLevel, int, str]) -> LogLevel:
        r"""Create enumeration value from function argument."""
        if isinstance(arg, int):
            return cls(logging.getLevelName(arg))
        if isinstance(arg, str):
            arg = arg.upper()
        return cls(arg)

    @staticmethod
    def _level(arg: Union[LogLevel, int, str]) -> int:
        if isinstance(arg, str):
            return int(LogLevel.from_arg(arg))
        return int(arg)

    def __str__(self) -> str:
        return self.value

    def __int__(self) -> int:
        r"""Cast enumeration to int logging level."""
        return int(getattr(logging, self.value))

    def __hash__(self) -> int:
        return hash(self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (int, str)):
            return NotImplemented
        try:
            return int(self) == self._level(other)
        except ValueError:
            return False

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __lt__(self, other: Union[LogLevel, int, str]) -> bool:
        return int(self) < self._level(other)

    def __le__(self, other: Union[LogLevel, int, str]) -> bool:
        return int(self) <= self._level(other)

    def __gt__(self, other: Union[LogLevel, int, str]) -> bool:
        return int(self) > self._level(other)

    def __ge__(self, other: Union[LogLevel, int, str]) -> bool:
        return int(self) >= self._level(other)


LOG_FORMAT = "%(asctime)-15s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    logger: Optional[Logger] = None,
    args: Optional[Namespace] = None,
    log_level: Optional[Union[int, str, LogLevel]] = None,
    format: Optional[str] = None,
) -> Logger:
    r"""Initialize logging.

    Args:
        logger: Logger whose level is set. Default is the ``"deepstn"`` package logger.
        args: Parsed command line arguments of an application using this package. If it has
            a ``log_level`` attribute, this value takes precedence over ``log_level``.
        log_level: Logging level. Default is ``logging.INFO``.
        format: Log message format. Default is ``LOG_FORMAT``.

    Returns:
        The configured ``logger``.

    """
    if logger is None:
        logger = logging.getLogger("deepstn")
    logging.basicConfig(format=format or LOG_FORMAT)
    if log_level is None:
        log_level = logging.INFO
    if args is not None:
        log_level = getattr(args, "log_level", log_level)
    log_level = LogLevel.from_arg(log_level)
    logger.setLevel(int(log_level))
    return logger
