"""Logging setup for the NeoNEST services."""

import logging

LOGGER_NAME = "neonest"
_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach one stream handler to the package logger.

    Repeated calls only adjust the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())
    if logger.handlers:
        return logger
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
