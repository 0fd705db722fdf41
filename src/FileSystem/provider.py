"""
S3 filesystem provider.

The provider creates filesystem sessions for s3:// URIs and keeps them in a
FileSystemRegistry so that every lookup of a bucket resolves to the same open
session.
"""

import logging
import threading
from typing import Any, Mapping, Optional, Union

from Configuration import S3Config, S3FileSystemConfiguration
from FileSystem.client_provider import S3ClientProvider
from FileSystem.path import S3Path
from FileSystem.registry import FileSystemRegistry, default_registry
from FileSystem.s3 import S3FileSystem
from FileSystem.uri import RootId, parse_s3_uri

ConfigLike = Union[S3FileSystemConfiguration, Mapping[str, Any], None]


class S3FileSystemProvider:
    """
    Factory and lookup point for S3 filesystem sessions.

    Args:
        registry: Registry holding the open sessions (default: the process-wide registry)
        configuration: Defaults applied to every session this provider creates (default: read from the environment)
    """

    scheme = S3Config.SCHEME

    def __init__(
        self,
        registry: Optional[FileSystemRegistry] = None,
        configuration: Optional[S3FileSystemConfiguration] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.registry = registry if registry is not None else default_registry()
        self.configuration = configuration or S3FileSystemConfiguration.from_env()

    def _build_configuration(self, root_id: RootId, config: ConfigLike) -> S3FileSystemConfiguration:
        if isinstance(config, S3FileSystemConfiguration):
            configuration = config
        else:
            configuration = self.configuration.with_overrides(config)
        if configuration.bucket_name not in (None, root_id.bucket):
            raise ValueError(
                f"Configured bucket '{configuration.bucket_name}' does not match URI bucket '{root_id.bucket}'"
            )
        return configuration.with_overrides({"bucket_name": root_id.bucket})

    def _create(self, root_id: RootId, config: ConfigLike, client_provider: Optional[S3ClientProvider]) -> S3FileSystem:
        configuration = self._build_configuration(root_id, config)
        return S3FileSystem(self, configuration, client_provider=client_provider)

    def new_file_system(
        self,
        uri: str,
        config: ConfigLike = None,
        client_provider: Optional[S3ClientProvider] = None,
    ) -> S3FileSystem:
        """
        Create and register a filesystem for the bucket of a URI.

        Args:
            uri: An s3:// URI; any key part is ignored
            config: A configuration, or a mapping of overrides for the provider defaults
            client_provider: Optional client provider for the new session

        Returns:
            The new, open filesystem

        Raises:
            FileSystemAlreadyExistsError: If an open filesystem is registered for the bucket
            ValueError: If the URI is not an s3:// URI
        """
        root_id, _ = parse_s3_uri(uri)
        filesystem = self._create(root_id, config, client_provider)
        self.registry.register(filesystem)
        self.logger.info(f"Opened filesystem {root_id}")
        return filesystem

    def get_file_system(self, uri: str) -> S3FileSystem:
        """
        Get the open filesystem for the bucket of a URI.

        Raises:
            FileSystemNotFoundError: If no open filesystem is registered for the bucket
        """
        root_id, _ = parse_s3_uri(uri)
        return self.registry.get(root_id)

    def get_or_create_file_system(self, uri: str) -> S3FileSystem:
        """Get the open filesystem for a URI, creating one with the provider defaults if needed."""
        root_id, _ = parse_s3_uri(uri)
        return self.registry.get_or_register(root_id, lambda: self._create(root_id, None, None))

    def get_path(self, uri: str) -> S3Path:
        """
        Convert an s3:// URI to a path, creating the filesystem on first use.

        Building the path does not contact the store.
        """
        _, key = parse_s3_uri(uri)
        filesystem = self.get_or_create_file_system(uri)
        return filesystem.get_path(S3Config.PATH_SEPARATOR + key)

    def close_file_system(self, filesystem: S3FileSystem) -> None:
        """Forget a filesystem that is closing. Called by the filesystem itself."""
        if self.registry.remove(filesystem):
            self.logger.info(f"Unregistered filesystem {filesystem.root_id}")


_DEFAULT_PROVIDER: Optional[S3FileSystemProvider] = None
_DEFAULT_PROVIDER_LOCK = threading.Lock()


def default_provider() -> S3FileSystemProvider:
    """Return the process-wide provider, bound to the default registry."""
    global _DEFAULT_PROVIDER
    with _DEFAULT_PROVIDER_LOCK:
        if _DEFAULT_PROVIDER is None:
            _DEFAULT_PROVIDER = S3FileSystemProvider()
        return _DEFAULT_PROVIDER
