"""
Logging setup shared by every module.

Reads LOG_LEVEL from the environment (a .env file is honoured) and configures
the root logger once.
"""

import logging
import os
from dotenv import load_dotenv

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

VALID_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}

_configured = False


def resolve_log_level(level_name: str) -> int:
    """Map a level name to a logging level, defaulting to INFO"""
    level_name = (level_name or '').upper()
    if level_name in VALID_LEVELS:
        return VALID_LEVELS[level_name]

    logging.getLogger(__name__).warning(
        f"Invalid LOG_LEVEL '{level_name}', defaulting to INFO. "
        f"Valid options: {', '.join(VALID_LEVELS.keys())}"
    )
    return logging.INFO


def configure_logging(level_name: str = None):
    """Configure the root logger (idempotent)"""
    global _configured
    if _configured:
        return

    load_dotenv()
    if level_name is None:
        level_name = os.getenv('LOG_LEVEL', 'INFO')

    logging.basicConfig(level=resolve_log_level(level_name), format=LOG_FORMAT)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring logging on first use"""
    configure_logging()
    return logging.getLogger(name)
