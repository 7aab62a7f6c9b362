# rts_camera/core/logging.py

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional, Union


class Logger:
    """
    Camera logging system.
    Console output, with an optional timestamped log file.
    """

    def __init__(self, name: str = "RtsCamera", log_dir: Optional[str] = None, level: Union[int, str] = logging.INFO):
        self.name = name
        self.log_dir = Path(log_dir) if log_dir else None

        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)

        # Prevent duplicate handlers
        if not self.logger.handlers:
            self._setup_handlers(level)

    def _setup_handlers(self, level: Union[int, str]):
        """Setup console and (optionally) file handlers."""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_formatter = logging.Formatter(
            '%(levelname)-8s [%(name)s] %(message)s'
        )
        console_handler.setFormatter(console_formatter)
        self.logger.addHandler(console_handler)

        if self.log_dir is None:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = self.log_dir / f"camera_{timestamp}.log"

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        self.logger.addHandler(file_handler)

    def set_level(self, level: Union[int, str]):
        """Change the console threshold."""
        for handler in self.logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(level)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def error(self, message: str, exc_info: bool = False):
        """Log error message."""
        self.logger.error(message, exc_info=exc_info)


# Global logger instance
_logger: Optional[Logger] = None


def get_logger() -> Logger:
    """Get global camera logger."""
    global _logger
    if _logger is None:
        _logger = Logger()
    return _logger


def init_logger(name: str = "RtsCamera", log_dir: Optional[str] = None,
                level: Union[int, str] = logging.INFO) -> Logger:
    """Initialize global logger."""
    global _logger
    existing = logging.getLogger(name)
    for handler in list(existing.handlers):
        existing.removeHandler(handler)
        handler.close()
    _logger = Logger(name, log_dir, level)
    return _logger
