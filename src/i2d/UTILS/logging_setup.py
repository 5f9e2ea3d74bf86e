"""
Logger construction for the command line tool.
"""
import logging
import sys

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

def configure_logging(level: str = "info", stream=None) -> logging.Logger:
    """
    Builds the 'i2d' logger. Records go to stderr so stdout only carries
    the recipe. Unknown level names fall back to info.
    """
    logger = logging.getLogger("i2d")
    logger.setLevel(LEVELS.get(level.lower(), logging.INFO))
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(handler)
    return logger
