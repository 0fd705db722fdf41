"""
S3 filesystem module.

This module presents an S3 bucket as a hierarchical filesystem: paths,
directory listings, byte channels and a session lifecycle over a flat key
space.
"""

from .base import FileSystem
from .client_provider import FixedS3ClientProvider, S3ClientProvider
from .exceptions import (
    ChannelCloseError,
    ClosedFileSystemError,
    FileSystemAlreadyExistsError,
    FileSystemNotFoundError,
    InvalidPathError,
    ReadOnlyFileSystemError,
    S3FileSystemError,
    UnsupportedOperationError,
)
from .path import S3Path
from .provider import S3FileSystemProvider, default_provider
from .registry import FileSystemRegistry, default_registry, get_filesystem, register_filesystem
from .s3 import S3FileSystem
from .uri import RootId, parse_s3_uri

__all__ = [
    "FileSystem",
    "S3FileSystem",
    "S3FileSystemProvider",
    "S3Path",
    "S3ClientProvider",
    "FixedS3ClientProvider",
    "FileSystemRegistry",
    "RootId",
    "default_provider",
    "default_registry",
    "get_filesystem",
    "register_filesystem",
    "parse_s3_uri",
    "S3FileSystemError",
    "FileSystemAlreadyExistsError",
    "FileSystemNotFoundError",
    "ClosedFileSystemError",
    "InvalidPathError",
    "UnsupportedOperationError",
    "ReadOnlyFileSystemError",
    "ChannelCloseError",
]
