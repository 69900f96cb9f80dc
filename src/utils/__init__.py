"""
Shared utilities: logging setup, configuration and the market clock.
"""

from .logging_utils import get_logger
from .config import Settings, load_settings

__all__ = [
    'get_logger',
    'Settings',
    'load_settings'
]
