# config/logging_config.py
from __future__ import annotations

import logging
import logging.config
import os

from config.settings import LOG_FILE, LOG_LEVEL


def build_logging_config(level: str = LOG_LEVEL, log_file: str | None = LOG_FILE) -> dict:
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": level,
        },
    }
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": log_file,
            "formatter": "standard",
            "level": level,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
        },
        "handlers": handlers,
        "root": {"handlers": list(handlers), "level": level},
        "loggers": {
            "services": {
                "handlers": list(handlers),
                "level": level,
                "propagate": False,
            },
            "db": {
                "handlers": list(handlers),
                "level": level,
                "propagate": False,
            },
        },
    }


def setup_logging(level: str = LOG_LEVEL, log_file: str | None = LOG_FILE):
    logging.config.dictConfig(build_logging_config(level, log_file))
