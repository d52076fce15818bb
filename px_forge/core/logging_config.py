"""Logging setup for the px-forge CLI.

Library modules only call logging.getLogger(__name__); this module is the one
place handlers are attached, and only the CLI calls it.
"""

import logging
import logging.config
import os
import sys
from typing import Any

LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def get_log_level() -> str:
    level = os.getenv('PX_FORGE_LOG_LEVEL', 'WARNING').upper()
    return level if level in LEVELS else 'WARNING'


def get_logging_config(level: str | None = None) -> dict[str, Any]:
    """dictConfig payload: one stderr handler for the px_forge logger tree."""
    level = (level or get_log_level()).upper()
    if level not in LEVELS:
        level = 'WARNING'
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {
                'format': '%(levelname)s %(name)s: %(message)s',
            },
            'detailed': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S',
            },
        },
        'handlers': {
            'stderr': {
                'class': 'logging.StreamHandler',
                'level': level,
                'formatter': 'detailed' if level == 'DEBUG' else 'default',
                'stream': sys.stderr,
            },
        },
        'loggers': {
            'px_forge': {
                'level': level,
                'handlers': ['stderr'],
                'propagate': False,
            },
            # Pillow logs every plugin import at DEBUG
            'PIL': {
                'level': 'WARNING',
                'propagate': True,
            },
        },
    }


def setup_logging(level: str | None = None) -> None:
    logging.config.dictConfig(get_logging_config(level))
