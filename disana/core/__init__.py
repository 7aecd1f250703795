"""Core functionality: configuration, logging."""

from .config import load_config, Config
from .logging import setup_logging, get_logger

__all__ = ["load_config", "Config", "setup_logging", "get_logger"]
