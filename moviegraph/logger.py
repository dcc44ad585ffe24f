import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from moviegraph.config import settings

LOG_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'


def get_logger(name: str) -> logging.Logger:
    """
    Returns a logger writing one JSON object per record to stdout.
    Fields passed through `extra=` become keys of that object.
    """
    logger = logging.getLogger(name)

    # already configured by an earlier call
    if logger.handlers:
        return logger

    logger.setLevel(settings.LOG_LEVEL.upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
