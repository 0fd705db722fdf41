"""
Initializes the Configuration package.

This module provides centralized access to the filesystem constants and
the session configuration model.
"""

from .S3Config import S3Config, RegularExpressions
from .S3FileSystemConfiguration import S3FileSystemConfiguration
from .ConfigLoader import ConfigLoader

__all__ = [
    # Constants
    "S3Config",
    "RegularExpressions",

    # Session configuration
    "S3FileSystemConfiguration",
    "ConfigLoader",
]
