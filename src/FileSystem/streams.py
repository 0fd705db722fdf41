"""
Byte channels over S3 objects.

Read channels issue ranged GETs and keep a small LRU cache of fragments.
Write channels spool to a temporary file and upload the object on close.
Both deregister from their filesystem once closed.
"""

import io
import logging
import tempfile
import threading
from collections import OrderedDict
from typing import TYPE_CHECKING, Any

from Configuration import S3Config

if TYPE_CHECKING:
    from FileSystem.path import S3Path
    from FileSystem.s3 import S3FileSystem


class S3ReadChannel(io.RawIOBase):
    """Seekable read-only channel over one object."""

    def __init__(
        self,
        filesystem: "S3FileSystem",
        path: "S3Path",
        client: Any,
        size: int,
        fragment_size: int = S3Config.DEFAULT_MAX_FRAGMENT_SIZE,
        max_fragments: int = S3Config.DEFAULT_MAX_FRAGMENT_NUMBER,
    ):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.path = path
        self._fs = filesystem
        self._client = client
        self._size = size
        self._position = 0
        self._fragment_size = fragment_size
        self._max_fragments = max_fragments
        self._fragments: "OrderedDict[int, bytes]" = OrderedDict()
        # Owner close and filesystem force-close may race
        self._close_lock = threading.Lock()

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def size(self) -> int:
        """The object size in bytes, as reported when the channel was opened."""
        return self._size

    def tell(self) -> int:
        self._check_not_closed()
        return self._position

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_not_closed()
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._position + offset
        elif whence == io.SEEK_END:
            position = self._size + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")
        if position < 0:
            raise ValueError(f"Negative seek position: {position}")
        self._position = position
        return position

    def readinto(self, buffer) -> int:
        self._check_not_closed()
        if self._position >= self._size or len(buffer) == 0:
            return 0

        index, offset = divmod(self._position, self._fragment_size)
        fragment = self._fragment(index)
        count = min(len(buffer), len(fragment) - offset)
        if count <= 0:
            return 0
        buffer[:count] = fragment[offset:offset + count]
        self._position += count
        return count

    def _fragment(self, index: int) -> bytes:
        fragment = self._fragments.get(index)
        if fragment is not None:
            self._fragments.move_to_end(index)
            return fragment

        start = index * self._fragment_size
        end = min(start + self._fragment_size, self._size) - 1
        self.logger.debug(f"Fetching bytes {start}-{end} of {self.path.to_uri()}")
        response = self._client.get_object(
            Bucket=self.path.bucket_name,
            Key=self.path.key,
            Range=f"bytes={start}-{end}",
        )
        body = response["Body"]
        try:
            fragment = body.read()
        finally:
            body.close()

        self._fragments[index] = fragment
        while len(self._fragments) > self._max_fragments:
            self._fragments.popitem(last=False)
        return fragment

    def _check_not_closed(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed channel")

    def abort(self) -> None:
        self.close()

    def close(self) -> None:
        with self._close_lock:
            if self.closed:
                return
            try:
                self._fragments.clear()
            finally:
                super().close()
                self._fs.deregister_channel(self)

    def __repr__(self) -> str:
        return f"S3ReadChannel({self.path.to_uri()!r})"


class S3WriteChannel(io.RawIOBase):
    """Write-only channel that uploads the object when closed."""

    def __init__(
        self,
        filesystem: "S3FileSystem",
        path: "S3Path",
        client: Any,
        spool_size: int = S3Config.WRITE_SPOOL_SIZE,
    ):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.path = path
        self._fs = filesystem
        self._client = client
        self._buffer = tempfile.SpooledTemporaryFile(max_size=spool_size, mode="w+b")
        self._close_lock = threading.Lock()

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed channel")
        return self._buffer.write(data)

    def tell(self) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed channel")
        return self._buffer.tell()

    def abort(self) -> None:
        """Close without uploading anything."""
        with self._close_lock:
            if self.closed:
                return
            try:
                self._buffer.close()
            finally:
                super().close()
                self._fs.deregister_channel(self)

    def close(self) -> None:
        with self._close_lock:
            if self.closed:
                return
            try:
                size = self._buffer.tell()
                self._buffer.seek(0)
                self._client.upload_fileobj(self._buffer, self.path.bucket_name, self.path.key)
                self.logger.debug(f"Uploaded {size} bytes to {self.path.to_uri()}")
            finally:
                self._buffer.close()
                super().close()
                self._fs.deregister_channel(self)

    def __repr__(self) -> str:
        return f"S3WriteChannel({self.path.to_uri()!r})"
