"""
Filesystem exceptions.

Store-level errors (missing bucket, credentials, connectivity) are raised by
botocore and are not wrapped by anything in this module.
"""

import io
from typing import Any, List, Tuple


class S3FileSystemError(Exception):
    """Base class for filesystem-level errors."""


class FileSystemAlreadyExistsError(S3FileSystemError):
    """An open filesystem is already registered for the root."""


class FileSystemNotFoundError(S3FileSystemError):
    """No open filesystem is registered for the root."""


class ClosedFileSystemError(S3FileSystemError):
    """The filesystem has been closed."""


class InvalidPathError(S3FileSystemError, ValueError):
    """A path string cannot be converted to a path of this filesystem."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{reason}: {path!r}")
        self.path = path
        self.reason = reason


class UnsupportedOperationError(S3FileSystemError, io.UnsupportedOperation):
    """The operation is not supported by the target object."""


class ReadOnlyFileSystemError(UnsupportedOperationError):
    """A write-type operation was attempted on a read-only filesystem."""


class ChannelCloseError(S3FileSystemError):
    """One or more channels failed to close while the filesystem was closing."""

    def __init__(self, failures: List[Tuple[Any, BaseException]]):
        super().__init__(f"{len(failures)} channel(s) failed to close")
        self.failures = failures
