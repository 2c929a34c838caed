"""
Utilities Module for the Book Ticker
===================================

Configuration management and logging setup.
"""

from .config import Config, load_config
from .logger import get_logger, setup_logging_mode

__all__ = ['Config', 'load_config', 'get_logger', 'setup_logging_mode']
