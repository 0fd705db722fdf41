"""
Utility functions for the S3 filesystem.

This module provides utility functions for logging.
"""

from .logging import setup_logging, get_logger

__all__ = ["setup_logging", "get_logger"]
