"""
Filesystem registry.

This module provides the registry mapping root identifiers to open
filesystem instances. A process-wide default registry starts empty at import
time; filesystems remove themselves from it when closed. Providers accept an
explicit registry so tests can use isolated instances.
"""

import logging
import threading
from typing import Callable, Dict, List

from FileSystem.base import FileSystem
from FileSystem.exceptions import FileSystemAlreadyExistsError, FileSystemNotFoundError
from FileSystem.uri import RootId

logger = logging.getLogger(__name__)


class FileSystemRegistry:
    """
    Thread-safe map from root identifier to filesystem.

    At most one open filesystem is registered per root. Closed filesystems
    left behind are treated as absent and replaced on the next registration.
    """

    def __init__(self) -> None:
        self._filesystems: Dict[RootId, FileSystem] = {}
        self._lock = threading.Lock()

    def register(self, filesystem: FileSystem) -> None:
        """
        Register a filesystem under its root identifier.

        Args:
            filesystem: The filesystem to register

        Raises:
            FileSystemAlreadyExistsError: If an open filesystem is registered for the same root
        """
        root_id = filesystem.root_id
        with self._lock:
            existing = self._filesystems.get(root_id)
            if existing is not None and existing is not filesystem and existing.is_open():
                raise FileSystemAlreadyExistsError(f"File system already exists: {root_id}")
            self._filesystems[root_id] = filesystem
        logger.debug(f"Registered filesystem: {root_id}")

    def get(self, root_id: RootId) -> FileSystem:
        """
        Get the open filesystem registered for a root.

        Raises:
            FileSystemNotFoundError: If no open filesystem is registered
        """
        with self._lock:
            filesystem = self._filesystems.get(root_id)
        if filesystem is None or not filesystem.is_open():
            raise FileSystemNotFoundError(f"File system not found: {root_id}")
        return filesystem

    def get_or_register(self, root_id: RootId, factory: Callable[[], FileSystem]) -> FileSystem:
        """
        Get the open filesystem for a root, registering ``factory()`` if there is none.

        The factory runs under the registry lock and must not perform I/O.
        """
        with self._lock:
            filesystem = self._filesystems.get(root_id)
            if filesystem is not None and filesystem.is_open():
                return filesystem
            filesystem = factory()
            if filesystem.root_id != root_id:
                raise ValueError(f"Factory built a filesystem for {filesystem.root_id}, expected {root_id}")
            self._filesystems[root_id] = filesystem
        logger.debug(f"Registered filesystem: {root_id}")
        return filesystem

    def remove(self, filesystem: FileSystem) -> bool:
        """
        Remove a filesystem if it is the one registered for its root.

        Returns:
            True if the filesystem was removed
        """
        root_id = filesystem.root_id
        with self._lock:
            if self._filesystems.get(root_id) is not filesystem:
                return False
            del self._filesystems[root_id]
        logger.debug(f"Removed filesystem: {root_id}")
        return True

    def roots(self) -> List[RootId]:
        with self._lock:
            return list(self._filesystems)

    def clear(self) -> None:
        with self._lock:
            self._filesystems.clear()

    def __contains__(self, root_id: object) -> bool:
        with self._lock:
            filesystem = self._filesystems.get(root_id)
        return filesystem is not None and filesystem.is_open()

    def __len__(self) -> int:
        with self._lock:
            return len(self._filesystems)


# Process-wide default registry
_DEFAULT_REGISTRY = FileSystemRegistry()


def default_registry() -> FileSystemRegistry:
    """Return the process-wide registry."""
    return _DEFAULT_REGISTRY


def register_filesystem(filesystem: FileSystem) -> None:
    """
    Register a filesystem in the default registry.

    Args:
        filesystem: The filesystem to register
    """
    _DEFAULT_REGISTRY.register(filesystem)


def get_filesystem(root_id: RootId) -> FileSystem:
    """
    Get an open filesystem from the default registry.

    Args:
        root_id: The root identifier of the filesystem

    Returns:
        The registered filesystem

    Raises:
        FileSystemNotFoundError: If no open filesystem is registered for the root
    """
    return _DEFAULT_REGISTRY.get(root_id)
