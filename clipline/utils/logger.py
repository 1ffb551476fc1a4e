"""
Logging setup for clipline

Everything goes to a rotating log file under ``paths.logs``. The terminal
gets a Rich console handler with its own, usually quieter, level so that
render progress bars are not buried in per-segment messages.
"""

import logging
import logging.handlers
from pathlib import Path

from rich.logging import RichHandler


def _level(name: str, option: str) -> int:
    value = logging.getLevelName(str(name).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level for logging.{option}: {name}")
    return value


def setup_logging(config: 'Config') -> logging.Logger:
    """Configure the ``clipline`` logger from ``config.logging``

    Options: ``level`` (file and logger), ``console_level`` (defaults to
    ``level``), ``console`` (false disables terminal output), ``format``,
    ``file``, ``max_size_mb`` and ``backup_count``.
    """
    log_config = config.logging
    level = _level(log_config.get('level', 'INFO'), 'level')
    console_level = _level(log_config.get('console_level', logging.getLevelName(level)), 'console_level')
    format_str = log_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    log_file = Path(log_config.get('file', Path(config.paths.logs) / 'clipline.log'))

    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger('clipline')
    # The logger passes everything either handler wants
    logger.setLevel(min(level, console_level))

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=int(log_config.get('max_size_mb', 20)) * 1024 * 1024,
        backupCount=int(log_config.get('backup_count', 5)),
        encoding='utf-8'
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(format_str))
    logger.addHandler(file_handler)

    if log_config.get('console', True):
        # Rich brings its own time and level columns
        console_handler = RichHandler(rich_tracebacks=True, show_path=False)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(console_handler)

    logger.debug(f"Logging to {log_file} (file {logging.getLevelName(level)}, "
                 f"console {logging.getLevelName(console_level)})")
    return logger


class LoggerMixin:
    """Mixin class to add logging capabilities to other classes"""

    @property
    def logger(self) -> logging.Logger:
        if not hasattr(self, '_logger'):
            self._logger = logging.getLogger(f'clipline.{self.__class__.__name__}')
        return self._logger
