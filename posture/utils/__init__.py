"""
Posture Utility Modules
Logging, console output and connection URL helpers
"""

from .logger import setup_logger
from .urls import mask_connection_url

__all__ = [
    "setup_logger",
    "mask_connection_url"
]
