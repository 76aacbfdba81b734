"""Central logging configuration for cityweather."""

import logging
import sys


def configure_logging(level=logging.INFO) -> logging.Logger:
    logger = logging.getLogger("cityweather")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(stream=sys.stdout)
    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.propagate = False
    return logger
