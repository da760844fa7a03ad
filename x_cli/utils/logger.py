import logging
import sys
from typing import Optional
from pathlib import Path

PACKAGE_LOGGER = "x_cli"


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        # stdout carries the result envelope, so logs always go to stderr
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(console_handler)
        logger.setLevel(logging.WARNING)
        logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger that writes through the package handlers.

    Args:
        name: Logger name (usually __name__ of calling module)

    Returns:
        Logger instance
    """
    _package_logger()
    return logging.getLogger(name or PACKAGE_LOGGER)


def configure_logging(level: str = "WARNING", log_format: Optional[str] = None,
                      log_file: Optional[str] = None) -> logging.Logger:
    """
    Apply settings-driven configuration to the package logger.

    Args:
        level: Level name, e.g. "DEBUG"
        log_format: logging format string
        log_file: Optional path of an additional log file

    Returns:
        The configured package logger
    """
    logger = _package_logger()
    formatter = logging.Formatter(log_format or '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    log_level = getattr(logging, level.upper(), logging.WARNING)

    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()
        else:
            handler.setFormatter(formatter)
            handler.setLevel(log_level)

    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(str(log_path))
            file_handler.setFormatter(formatter)
            file_handler.setLevel(log_level)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.error(f"Error configuring file logger: {str(e)}")

    logger.setLevel(log_level)
    logger.debug(f"Log level: {logging.getLevelName(log_level)}")
    return logger
