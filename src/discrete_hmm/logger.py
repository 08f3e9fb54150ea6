"""
Logging infrastructure for the discrete HMM package.

Every module logs through a child of the ``discrete_hmm`` logger, obtained
with ``get_logger(__name__)``. Handlers live on ``discrete_hmm`` only and are
built from the ``logging`` config section, so loading a config file and
calling :func:`configure_logging` again switches level, format and file
output for the whole package.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import get_config

ROOT_LOGGER_NAME = 'discrete_hmm'
DEFAULT_LOG_FILE = 'discrete_hmm.log'


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


class DiscreteHMMLogger:
    """Owns the handlers of the ``discrete_hmm`` logger hierarchy."""

    def __init__(self):
        self._loggers = {}
        self.configure()

    @property
    def root(self) -> logging.Logger:
        return logging.getLogger(ROOT_LOGGER_NAME)

    def configure(self):
        """(Re)build the handlers from the ``logging`` config section."""
        level = _level(get_config('logging', 'level') or 'INFO')
        formatter = logging.Formatter(get_config('logging', 'format'))

        root = self.root
        for handler in list(root.handlers):
            root.removeHandler(handler)
            if isinstance(handler, logging.FileHandler):
                handler.close()

        root.setLevel(level)
        self._attach(logging.StreamHandler(sys.stdout), level, formatter)

        if get_config('logging', 'file_logging'):
            log_file = get_config('logging', 'log_file') or DEFAULT_LOG_FILE
            self._attach(self._file_handler(log_file), level, formatter)

        # Prevent propagation to avoid duplicate messages
        root.propagate = False

    def _attach(self, handler: logging.Handler, level: int,
                formatter: Optional[logging.Formatter]):
        handler.setLevel(level)
        if formatter is not None:
            handler.setFormatter(formatter)
        self.root.addHandler(handler)

    @staticmethod
    def _file_handler(log_file: str) -> logging.FileHandler:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path)

    def get_logger(self, name: str) -> logging.Logger:
        """Logger for a module; names outside the package are nested under it."""
        if name == ROOT_LOGGER_NAME or name.startswith(f'{ROOT_LOGGER_NAME}.'):
            full_name = name
        else:
            full_name = f'{ROOT_LOGGER_NAME}.{name}'

        if full_name not in self._loggers:
            self._loggers[full_name] = logging.getLogger(full_name)
        return self._loggers[full_name]

    def set_level(self, level: str):
        """Set the level of the package logger and all of its handlers."""
        log_level = _level(level)
        self.root.setLevel(log_level)
        for handler in self.root.handlers:
            handler.setLevel(log_level)

    def enable_file_logging(self, log_file: Optional[str] = None):
        """Add a file handler unless one is already attached."""
        if any(isinstance(h, logging.FileHandler) for h in self.root.handlers):
            return

        if log_file is None:
            log_file = get_config('logging', 'log_file') or DEFAULT_LOG_FILE

        formatter = self.root.handlers[0].formatter if self.root.handlers else None
        self._attach(self._file_handler(log_file), self.root.level, formatter)

    def disable_file_logging(self):
        for handler in [h for h in self.root.handlers if isinstance(h, logging.FileHandler)]:
            self.root.removeHandler(handler)
            handler.close()


_logger_manager = DiscreteHMMLogger()


def get_logger(name: str = 'main') -> logging.Logger:
    """Get a logger instance for the specified module/component."""
    return _logger_manager.get_logger(name)


def configure_logging():
    """Apply the current ``logging`` config section to the package logger."""
    _logger_manager.configure()


def set_log_level(level: str):
    """
    Set global logging level.

    Raises:
        ValueError: If ``level`` is not a logging level name
    """
    _logger_manager.set_level(level)


def enable_file_logging(log_file: Optional[str] = None):
    """Enable file logging globally."""
    _logger_manager.enable_file_logging(log_file)


def disable_file_logging():
    """Disable file logging globally."""
    _logger_manager.disable_file_logging()
