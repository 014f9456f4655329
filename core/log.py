"""Logging setup for the career matching service."""
import logging
import sys

LOGGER_NAME = "career_match"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a stderr handler to the application logger.

    Safe to call more than once; later calls only adjust the level.
    """
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    if not _configured:
        logger.handlers.clear()
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
        _configured = True

    for handler in logger.handlers:
        handler.setLevel(log_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the application logger, e.g. get_logger(__name__)."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
