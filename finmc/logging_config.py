"""
Logging setup for FinMC.

Purpose
-------
Library modules only create module-level loggers
(``logging.getLogger(__name__)``) and never configure handlers. The CLI, or
an application embedding FinMC, calls `setup_logging` once to install a
console handler on the root logger and, optionally, a rotating log file.

Example
-------
>>> from finmc.logging_config import setup_logging
>>> setup_logging("DEBUG", log_file="logs/finmc.log")
"""
import copy
import logging
import logging.config
import os
from typing import Optional


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "stream": "ext://sys.stderr",
            "level": "INFO",
        },
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
}


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Install the console handler on the root logger, plus a rotating file handler when *log_file* is given."""
    config = copy.deepcopy(LOGGING_CONFIG)
    config["handlers"]["console"]["level"] = level
    config["root"]["level"] = level
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 10_485_760,
            "backupCount": 5,
            "formatter": "standard",
            "level": "DEBUG",
        }
        config["root"]["handlers"].append("file")
        config["root"]["level"] = "DEBUG"
    logging.config.dictConfig(config)
