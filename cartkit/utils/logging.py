# cartkit/utils/logging.py
import logging
import sys

from cartkit.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)

    # jeden handler na logger, bez duplikatow przy ponownym imporcie
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    logger.setLevel(LOG_LEVEL.upper())
    return logger
