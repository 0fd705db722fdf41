"""
Base filesystem abstraction.

This module defines the abstract base class for filesystem sessions.
"""

from abc import ABC, abstractmethod
from typing import IO, Any, FrozenSet, List

from FileSystem.matcher import PathMatcher, get_path_matcher


class FileSystem(ABC):
    """
    Abstract base class for filesystem sessions.

    A session is bound to one root, hands out paths, and opens streams on
    them. It is open when created and becomes closed, irreversibly, when
    ``close`` is called.
    """

    # --- Session contract ---

    @property
    @abstractmethod
    def root_id(self) -> Any:
        """The identifier this filesystem is registered under."""

    @abstractmethod
    def is_open(self) -> bool:
        """Return True until ``close`` has been called."""

    @abstractmethod
    def is_read_only(self) -> bool:
        """Return True if write-type operations are rejected."""

    @abstractmethod
    def close(self) -> None:
        """
        Close the filesystem.

        Closing an already closed filesystem does nothing. Every other
        operation on a closed filesystem fails.
        """

    @abstractmethod
    def get_separator(self) -> str:
        """Return the name separator."""

    @abstractmethod
    def get_path(self, first: str, *more: str) -> Any:
        """
        Convert path strings to a path bound to this filesystem.

        Args:
            first: The path string or its first part
            *more: Additional strings joined with the separator

        Returns:
            A path of this filesystem
        """

    @abstractmethod
    def get_root_directories(self) -> List[Any]:
        """Return the root directories of this filesystem."""

    @abstractmethod
    def get_file_stores(self) -> FrozenSet[Any]:
        """Return the file stores of this filesystem."""

    @abstractmethod
    def supported_file_attribute_views(self) -> FrozenSet[str]:
        """Return the names of the supported attribute views."""

    def get_path_matcher(self, syntax_and_pattern: str) -> PathMatcher:
        """
        Return a matcher for 'glob:' or 'regex:' patterns.

        Args:
            syntax_and_pattern: The syntax and pattern, e.g. 'glob:*.csv'

        Returns:
            A PathMatcher matching against the string form of paths
        """
        return get_path_matcher(syntax_and_pattern)

    # --- Storage operations ---

    @abstractmethod
    def list_files(self, path_pattern: Any) -> List[Any]:
        """
        List files matching a pattern.

        Args:
            path_pattern: A path (or path string) with a glob pattern

        Returns:
            A list of paths for files that match the pattern
        """
        pass

    @abstractmethod
    def open_input_stream(self, path: Any) -> IO:
        """
        Open a file for reading.

        Args:
            path: The path of the file to open

        Returns:
            An IO object for reading the file

        Raises:
            FileNotFoundError: If the file does not exist
        """
        pass

    @abstractmethod
    def open_output_stream(self, path: Any) -> IO:
        """
        Open a file for writing.

        Args:
            path: The path of the file to open

        Returns:
            An IO object for writing to the file
        """
        pass

    @abstractmethod
    def exists(self, path: Any) -> bool:
        """
        Check if a file or directory exists.

        Args:
            path: The path to check

        Returns:
            True if the file exists, False otherwise
        """
        pass

    @abstractmethod
    def mkdirs(self, path: Any) -> None:
        """
        Create a directory.

        Args:
            path: The path of the directory to create
        """
        pass

    @abstractmethod
    def remove(self, path: Any, recursive: bool = False) -> None:
        """
        Remove a file or directory.

        Args:
            path: The path of the file or directory to remove
            recursive: If True and the path is a directory, remove it recursively

        Raises:
            FileNotFoundError: If the file or directory does not exist
        """
        pass

    # --- Context manager ---

    def __enter__(self) -> "FileSystem":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
