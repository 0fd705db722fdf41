"""
S3 filesystem session.

This module provides the filesystem implementation backed by one S3 bucket.
Keys are presented as a tree: 'a/b/c.txt' is the file '/a/b/c.txt' and every
key prefix ending in the separator is a directory.
"""

import errno
import logging
import threading
from typing import TYPE_CHECKING, Any, FrozenSet, List, Optional, Union

from botocore.exceptions import ClientError

from Configuration import S3Config, S3FileSystemConfiguration
from FileSystem.attributes import BasicFileAttributes, S3ObjectAttributes
from FileSystem.base import FileSystem
from FileSystem.channels import OpenChannelRegistry, OpenChannelsView
from FileSystem.client_provider import S3ClientProvider
from FileSystem.exceptions import (
    ChannelCloseError,
    ClosedFileSystemError,
    InvalidPathError,
    ReadOnlyFileSystemError,
    UnsupportedOperationError,
)
from FileSystem.matcher import PathMatcher, get_path_matcher
from FileSystem.path import S3Path
from FileSystem.streams import S3ReadChannel, S3WriteChannel
from FileSystem.uri import RootId, parse_s3_uri

if TYPE_CHECKING:
    from FileSystem.provider import S3FileSystemProvider

PathLike = Union[S3Path, str]

SUPPORTED_VIEWS = frozenset({S3Config.BASIC_VIEW, S3Config.S3_VIEW})
GLOB_CHARS = frozenset("*?[")


def is_object_not_found(error: ClientError) -> bool:
    """True if a ClientError reports a missing object (not a missing bucket)."""
    return error.response.get("Error", {}).get("Code") in S3Config.NOT_FOUND_CODES


class S3FileSystem(FileSystem):
    """
    Filesystem session over one S3 bucket.

    The session owns the channels opened through it and a swappable client
    provider. It is safe to share between threads. ``close`` force-closes
    every open channel and unregisters the session from its provider; after
    that every operation other than ``close``, ``is_open`` and the identity
    queries raises ClosedFileSystemError.

    The client provider may be replaced at any time. Replacement is not
    coordinated with calls already in flight; the last assignment wins.
    """

    def __init__(
        self,
        provider: "S3FileSystemProvider",
        configuration: S3FileSystemConfiguration,
        client_provider: Optional[S3ClientProvider] = None,
    ):
        if not configuration.bucket_name:
            raise ValueError("Configuration has no bucket name")
        self.logger = logging.getLogger(__name__)
        self._provider = provider
        self._configuration = configuration
        self._root_id = RootId(S3Config.SCHEME, configuration.bucket_name)
        self._client_provider = client_provider or S3ClientProvider(configuration)
        self._open_channels = OpenChannelRegistry()
        self._state_lock = threading.Lock()
        self._open = True
        self._root = S3Path(self, (), True)

    @classmethod
    def from_bucket_name(cls, bucket_name: str) -> "S3FileSystem":
        """Legacy form: a session for a bucket, bound to the default provider and not registered."""
        from FileSystem.provider import default_provider

        return cls(default_provider(), S3FileSystemConfiguration(bucket_name=bucket_name))

    @classmethod
    def from_uri(cls, uri: str, provider: Optional["S3FileSystemProvider"] = None) -> "S3FileSystem":
        """Legacy form: a session for the bucket of an s3:// URI, not registered."""
        from FileSystem.provider import default_provider

        root_id, _ = parse_s3_uri(uri)
        return cls(provider or default_provider(), S3FileSystemConfiguration(bucket_name=root_id.bucket))

    # --- Identity ---

    @property
    def provider(self) -> "S3FileSystemProvider":
        return self._provider

    @property
    def configuration(self) -> S3FileSystemConfiguration:
        return self._configuration

    @property
    def root_id(self) -> RootId:
        return self._root_id

    @property
    def bucket_name(self) -> str:
        return self._root_id.bucket

    def get_separator(self) -> str:
        return S3Config.PATH_SEPARATOR

    def is_open(self) -> bool:
        return self._open

    def is_read_only(self) -> bool:
        return self._configuration.read_only

    # --- Client ---

    @property
    def client_provider(self) -> S3ClientProvider:
        self._check_open()
        return self._client_provider

    @client_provider.setter
    def client_provider(self, client_provider: S3ClientProvider) -> None:
        self._check_open()
        self._client_provider = client_provider

    def client(self) -> Any:
        """
        Get the storage client for this bucket from the current client provider.

        Raises:
            ClosedFileSystemError: If the filesystem is closed
            botocore.exceptions.ClientError: If the provider cannot resolve the bucket
        """
        self._check_open()
        return self._client_provider.get_client(self.bucket_name)

    # --- Lifecycle ---

    def _check_open(self) -> None:
        if not self._open:
            raise ClosedFileSystemError(f"File system is closed: {self._root_id}")

    def _check_writable(self) -> None:
        if self.is_read_only():
            raise ReadOnlyFileSystemError(f"File system is read-only: {self._root_id}")

    def close(self) -> None:
        """
        Close the filesystem.

        Every open channel is closed; failures are collected so the rest of
        the channels still get closed and the session still unregisters.

        Raises:
            ChannelCloseError: After closing, if any channel failed to close
        """
        with self._state_lock:
            if not self._open:
                return
            self._open = False

        self.logger.info(f"Closing filesystem {self._root_id}")
        results = self._open_channels.close_all()
        failures = [(channel, error) for channel, error in results if error is not None]
        self._provider.close_file_system(self)

        if failures:
            self.logger.error(f"{len(failures)} of {len(results)} channel(s) failed to close on {self._root_id}")
            raise ChannelCloseError(failures)
        self.logger.debug(f"Closed filesystem {self._root_id} and {len(results)} channel(s)")

    # --- Open channels ---

    def get_open_channels(self) -> OpenChannelsView:
        """Return a read-only snapshot of the channels open right now."""
        self._check_open()
        return self._open_channels.snapshot()

    def register_channel(self, channel: Any) -> None:
        """
        Track a channel opened against this filesystem.

        Raises:
            ClosedFileSystemError: If the filesystem is closed or closing
        """
        self._check_open()
        self._open_channels.add(channel)

    def deregister_channel(self, channel: Any) -> None:
        """Stop tracking a channel. Allowed after close."""
        self._open_channels.remove(channel)

    def _track(self, channel: Any) -> Any:
        try:
            self.register_channel(channel)
        except ClosedFileSystemError:
            channel.abort()
            raise
        return channel

    # --- Paths ---

    def get_path(self, first: str, *more: str) -> S3Path:
        self._check_open()
        return S3Path.get_path(self, first, *more)

    def get_root_directories(self) -> List[S3Path]:
        self._check_open()
        return [self._root]

    def get_file_stores(self) -> FrozenSet[Any]:
        self._check_open()
        return frozenset()

    def supported_file_attribute_views(self) -> FrozenSet[str]:
        self._check_open()
        return SUPPORTED_VIEWS

    def get_path_matcher(self, syntax_and_pattern: str) -> PathMatcher:
        self._check_open()
        return get_path_matcher(syntax_and_pattern)

    def _resolve(self, path: PathLike) -> S3Path:
        self._check_open()
        if isinstance(path, str):
            path = S3Path.get_path(self, path)
        elif not isinstance(path, S3Path):
            raise TypeError(f"Expected S3Path or str, got {type(path).__name__}")
        elif path.file_system is not self:
            raise InvalidPathError(str(path), "Path belongs to a different filesystem")
        return path.to_absolute_path()

    def _path_for_key(self, key: str) -> S3Path:
        return S3Path.get_path(self, S3Config.PATH_SEPARATOR + key)

    @staticmethod
    def _directory_prefix(path: S3Path) -> str:
        if path.is_root() or path.is_directory():
            return path.key
        return path.key + S3Config.PATH_SEPARATOR

    # --- Storage operations ---

    def _head_object(self, client: Any, path: S3Path) -> Optional[dict]:
        try:
            return client.head_object(Bucket=self.bucket_name, Key=path.key)
        except ClientError as e:
            if is_object_not_found(e):
                return None
            raise

    def _has_children(self, client: Any, path: S3Path) -> bool:
        response = client.list_objects_v2(
            Bucket=self.bucket_name,
            Prefix=self._directory_prefix(path),
            MaxKeys=1,
        )
        return response.get("KeyCount", len(response.get("Contents", []))) > 0

    def exists(self, path: PathLike) -> bool:
        """
        Check if a file or directory exists.

        Returns False only when the bucket answered and neither an object nor
        a key prefix matched. A missing bucket or an unreachable service
        raises the storage client's error.
        """
        path = self._resolve(path)
        client = self.client()

        if path.is_root():
            client.head_bucket(Bucket=self.bucket_name)
            return True
        if not path.is_directory() and self._head_object(client, path) is not None:
            return True
        return self._has_children(client, path)

    def read_attributes(self, path: PathLike, view: str = S3Config.BASIC_VIEW) -> BasicFileAttributes:
        """
        Read the attributes of a file or directory.

        Args:
            path: The path to inspect
            view: 'basic' or 's3'

        Returns:
            BasicFileAttributes for 'basic', S3ObjectAttributes for 's3'

        Raises:
            UnsupportedOperationError: If the view is not supported
            FileNotFoundError: If nothing exists at the path
        """
        if view not in SUPPORTED_VIEWS:
            raise UnsupportedOperationError(f"Attribute view not supported: {view}")
        path = self._resolve(path)
        client = self.client()

        attributes = None
        if path.is_root():
            client.head_bucket(Bucket=self.bucket_name)
            attributes = S3ObjectAttributes(is_directory=True)
        elif not path.is_directory():
            response = self._head_object(client, path)
            if response is not None:
                attributes = S3ObjectAttributes.from_head_object(response)

        if attributes is None:
            if not self._has_children(client, path):
                raise FileNotFoundError(f"File not found: {path}")
            attributes = S3ObjectAttributes(is_directory=True)

        return attributes if view == S3Config.S3_VIEW else attributes.to_basic()

    def open_input_stream(self, path: PathLike) -> S3ReadChannel:
        """
        Open an object for reading.

        Args:
            path: The path of the object to open

        Returns:
            A seekable S3ReadChannel, tracked until it is closed

        Raises:
            FileNotFoundError: If the object does not exist
            IsADirectoryError: If the path names a directory
            botocore.exceptions.ClientError: If the bucket does not exist
        """
        path = self._resolve(path)
        self.logger.debug(f"Opening input stream for: {path.to_uri()}")
        if path.is_directory():
            raise IsADirectoryError(f"Is a directory: {path}")

        client = self.client()
        response = self._head_object(client, path)
        if response is None:
            # HeadObject answers a missing bucket with the same bare 404
            client.head_bucket(Bucket=self.bucket_name)
            raise FileNotFoundError(f"File not found: {path}")

        channel = S3ReadChannel(
            self,
            path,
            client,
            size=response.get("ContentLength", 0),
            fragment_size=self._configuration.max_fragment_size,
            max_fragments=self._configuration.max_fragment_number,
        )
        return self._track(channel)

    def open_output_stream(self, path: PathLike) -> S3WriteChannel:
        """
        Open an object for writing. The object is uploaded when the stream is closed.

        Raises:
            ReadOnlyFileSystemError: If the filesystem is read-only
            IsADirectoryError: If the path names a directory
        """
        path = self._resolve(path)
        self._check_writable()
        self.logger.debug(f"Opening output stream for: {path.to_uri()}")
        if path.is_directory():
            raise IsADirectoryError(f"Is a directory: {path}")

        return self._track(S3WriteChannel(self, path, self.client()))

    def list_directory(self, path: PathLike, pattern: Optional[str] = None) -> List[S3Path]:
        """
        List the immediate children of a directory.

        Args:
            path: The directory to list
            pattern: Optional 'glob:' or 'regex:' filter applied to child names

        Returns:
            Child directories (with a trailing separator) and files
        """
        path = self._resolve(path)
        matcher = self.get_path_matcher(pattern) if pattern else None
        prefix = self._directory_prefix(path)
        client = self.client()

        children = []
        paginator = client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix, Delimiter=S3Config.PATH_SEPARATOR):
            for common_prefix in page.get("CommonPrefixes", []):
                children.append(self._path_for_key(common_prefix["Prefix"]))
            for obj in page.get("Contents", []):
                if obj["Key"] != prefix:
                    children.append(self._path_for_key(obj["Key"]))

        if matcher is not None:
            children = [child for child in children if matcher.matches(child.name)]
        self.logger.debug(f"Listed {len(children)} entries under {path.to_uri()}")
        return children

    def _list_keys(self, client: Any, prefix: str) -> List[str]:
        keys = []
        paginator = client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))
        return keys

    def list_files(self, path_pattern: PathLike) -> List[S3Path]:
        """
        List files matching a pattern.

        Args:
            path_pattern: A glob over absolute paths (e.g. '/logs/**/*.csv'),
                or a plain path naming a file or a directory to list recursively

        Returns:
            Matching file paths, sorted
        """
        pattern_path = self._resolve(path_pattern)
        self.logger.debug(f"Listing files with pattern: {pattern_path}")
        client = self.client()

        literal = []
        for segment in pattern_path.parts:
            if GLOB_CHARS.intersection(segment):
                break
            literal.append(segment)
        has_glob = len(literal) < len(pattern_path.parts)

        if not has_glob and not pattern_path.is_directory() and self._head_object(client, pattern_path) is not None:
            return [pattern_path]

        prefix = S3Config.PATH_SEPARATOR.join(literal)
        if prefix:
            prefix += S3Config.PATH_SEPARATOR
        matcher = get_path_matcher(f"glob:{pattern_path}") if has_glob else None

        files = []
        for key in self._list_keys(client, prefix):
            if key.endswith(S3Config.PATH_SEPARATOR):
                continue
            path = self._path_for_key(key)
            if matcher is None or matcher.matches(path):
                files.append(path)

        self.logger.debug(f"Found {len(files)} files")
        return sorted(files)

    def mkdirs(self, path: PathLike) -> None:
        """Create a directory by writing an empty 'key/' marker object."""
        path = self._resolve(path)
        self._check_writable()
        if path.is_root():
            return
        key = self._directory_prefix(path)
        self.client().put_object(Bucket=self.bucket_name, Key=key, Body=b"")
        self.logger.debug(f"Created directory marker {key}")

    def remove(self, path: PathLike, recursive: bool = False) -> None:
        """
        Remove a file or directory.

        Raises:
            FileNotFoundError: If nothing exists at the path
            OSError: If the directory is not empty and ``recursive`` is False
            UnsupportedOperationError: If the path is the root
        """
        path = self._resolve(path)
        self._check_writable()
        if path.is_root():
            raise UnsupportedOperationError("Cannot remove the root directory")
        client = self.client()

        if not path.is_directory() and self._head_object(client, path) is not None:
            client.delete_object(Bucket=self.bucket_name, Key=path.key)
            self.logger.debug(f"Removed {path.to_uri()}")
            return

        prefix = self._directory_prefix(path)
        if not recursive:
            response = client.list_objects_v2(Bucket=self.bucket_name, Prefix=prefix, MaxKeys=2)
            keys = [obj["Key"] for obj in response.get("Contents", [])]
            if not keys:
                raise FileNotFoundError(f"Path not found: {path}")
            if any(key != prefix for key in keys):
                raise OSError(errno.ENOTEMPTY, "Directory not empty", str(path))
            client.delete_object(Bucket=self.bucket_name, Key=prefix)
            return

        keys = self._list_keys(client, prefix)
        if not keys:
            raise FileNotFoundError(f"Path not found: {path}")
        self._delete_keys(client, keys)
        self.logger.debug(f"Removed {len(keys)} object(s) under {path.to_uri()}")

    def _delete_keys(self, client: Any, keys: List[str]) -> None:
        batch_size = S3Config.DELETE_BATCH_SIZE
        for start in range(0, len(keys), batch_size):
            batch = keys[start:start + batch_size]
            response = client.delete_objects(
                Bucket=self.bucket_name,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
            )
            errors = response.get("Errors", [])
            if errors:
                self.logger.error(f"Failed to delete {len(errors)} object(s): {errors[:5]}")
                raise OSError(f"Failed to delete {len(errors)} object(s) from {self.bucket_name}")

    def copy(self, source: PathLike, target: PathLike) -> None:
        """
        Copy one object to another key of this bucket.

        Raises:
            FileNotFoundError: If the source object does not exist
            IsADirectoryError: If either path names a directory
        """
        source = self._resolve(source)
        target = self._resolve(target)
        self._check_writable()
        if source.is_directory() or target.is_directory():
            raise IsADirectoryError(f"Cannot copy directories: {source} -> {target}")

        try:
            self.client().copy_object(
                CopySource={"Bucket": self.bucket_name, "Key": source.key},
                Bucket=self.bucket_name,
                Key=target.key,
            )
        except ClientError as e:
            if is_object_not_found(e):
                raise FileNotFoundError(f"File not found: {source}") from e
            raise
        self.logger.debug(f"Copied {source.to_uri()} to {target.to_uri()}")

    def move(self, source: PathLike, target: PathLike) -> None:
        """Move one object by copying it and deleting the source."""
        source = self._resolve(source)
        target = self._resolve(target)
        self.copy(source, target)
        self.client().delete_object(Bucket=self.bucket_name, Key=source.key)

    def __repr__(self) -> str:
        state = "open" if self._open else "closed"
        return f"S3FileSystem({self._root_id.to_uri()!r}, {state})"
