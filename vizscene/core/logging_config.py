"""Centralized logging configuration for vizscene.

Chart builds and layouts log through ``vizscene.*`` loggers: human-readable
lines on stderr for the CLI, JSON records for hosts that collect logs, and a
rotating JSON file with the per-tick DEBUG detail of force layouts.
"""

import copy
import logging
import logging.config
import os
from typing import Any

LOG_FILE = "vizscene.log"

LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
        },
        "console": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "console",
            # stdout carries chart output (simulate prints JSON)
            "stream": "ext://sys.stderr",
        },
        "json_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "json",
            "filename": os.path.join("logs", LOG_FILE),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
        },
    },
    "loggers": {
        "vizscene": {
            "level": "DEBUG",
            "handlers": ["console", "json_file"],
            "propagate": False,
        },
        # font cache and backend chatter from the raster renderer
        "matplotlib": {"level": "WARNING"},
        "PIL": {"level": "WARNING"},
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
}


def setup_logging(
    json_output: bool = False, log_level: str = "INFO", log_dir: str | None = "logs"
) -> None:
    """Configure logging for the CLI or an embedding host.

    Args:
        json_output: Emit JSON records on the console instead of text lines
        log_level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the rotating JSON log file; None disables the
            file handler
    """
    config = copy.deepcopy(LOGGING_CONFIG)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        config["handlers"]["json_file"]["filename"] = os.path.join(log_dir, LOG_FILE)
    else:
        del config["handlers"]["json_file"]
        config["loggers"]["vizscene"]["handlers"] = ["console"]

    if json_output:
        config["handlers"]["console"]["formatter"] = "json"

    if log_level:
        config["handlers"]["console"]["level"] = log_level.upper()
        config["loggers"]["vizscene"]["level"] = "DEBUG" if log_dir else log_level.upper()

    logging.config.dictConfig(config)


def get_logger(name: str) -> logging.Logger:
    """Return the module logger; call as ``get_logger(__name__)``."""
    return logging.getLogger(name)
