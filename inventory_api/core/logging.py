# inventory_api/core/logging.py

import logging

from inventory_api.core.config import Settings

LOGGER_NAME = "inventory"

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def configure_logging(settings: Settings) -> logging.Logger:
    level = logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper()

    logging.basicConfig(level=level, format=LOG_FORMAT)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    return logger
