"""
Logging utilities for the persona engine.
"""

import logging
import sys
from typing import Optional

from ..config.settings import default_config


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(stage_type)s - %(message)s"


def _numeric_level(level: str) -> int:
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")
    return numeric_level


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Set up a stdout logger whose records name their pipeline stage.

    Args:
        name: Name of the logger
        level: Logging level (defaults to config value)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(_numeric_level(level or default_config.log_level))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


class StageLogger:
    """Logger wrapper that tags every record with its pipeline stage."""

    def __init__(self, stage_type: str, level: Optional[str] = None):
        """Initialize stage logger.

        Args:
            stage_type: Pipeline stage this logger belongs to
            level: Optional logging level override
        """
        self.logger = setup_logger(f"persona.{stage_type}", level)
        self.stage_type = stage_type

    def set_level(self, level: str):
        """Change the level of the underlying logger."""
        self.logger.setLevel(_numeric_level(level))

    def _log(self, level: int, msg: str, *args, **kwargs):
        extra = kwargs.get("extra", {})
        extra["stage_type"] = self.stage_type
        kwargs["extra"] = extra
        self.logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        """Log debug message."""
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        """Log info message."""
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        """Log warning message."""
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        """Log error message."""
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        """Log error message with the active traceback."""
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, *args, **kwargs)
