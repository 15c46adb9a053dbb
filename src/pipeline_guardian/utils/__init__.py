"""Utility modules for Pipeline Guardian."""

from .logger import get_logger, setup_logging
from .config import Config, init_config
from .exceptions import *

__all__ = ["get_logger", "setup_logging", "Config", "init_config"]
