"""Logging configuration for the learning core."""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from chordcore.config import LoggingSettings


def setup_logging(settings: Optional[LoggingSettings] = None) -> None:
    """Set up root logging from settings."""
    settings = settings or LoggingSettings()

    if settings.file:
        Path(settings.file).parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.level)

    formatter = logging.Formatter(settings.format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if settings.file:
        file_handler = logging.handlers.RotatingFileHandler(
            settings.file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.info("Logging configured successfully")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)
