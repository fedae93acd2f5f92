"""Core utilities: logging, exceptions, constants."""

from sitmon.core.exceptions import SitmonError
from sitmon.core.logging import get_logger, setup_logging

__all__ = [
    "SitmonError",
    "get_logger",
    "setup_logging",
]
