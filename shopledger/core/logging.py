# shopledger/core/logging.py
import logging
import sys

from shopledger.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = None, log_file: str = None) -> logging.Logger:
    """
    Configures the 'shopledger' logger tree once.
    Console always, file only when LOG_FILE is set.
    """
    logger = logging.getLogger("shopledger")
    level = (level or settings.LOG_LEVEL).upper()
    logger.setLevel(level)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    log_file = log_file if log_file is not None else settings.LOG_FILE
    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger
