import logging
import os
import sys

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(funcName)s:%(lineno)d > %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str = "alarmcam", level: str | None = None) -> logging.Logger:
    """
    Configure a stdout handler for the given logger.

    Level and formats come from LOG_LEVEL, LOG_FMT and LOG_DATEFMT unless a
    level is passed explicitly.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    fmt = os.getenv("LOG_FMT", DEFAULT_FMT)
    datef = os.getenv("LOG_DATEFMT", DEFAULT_DATEFMT)

    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers on repeated setup
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datef))
        logger.addHandler(handler)
    return logger
