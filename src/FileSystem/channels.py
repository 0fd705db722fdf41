"""
Open channel tracking.

A filesystem session registers every channel it opens so that closing the
session can force-close whatever callers left open.
"""

import logging
import threading
from collections.abc import Set
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from FileSystem.exceptions import ClosedFileSystemError, UnsupportedOperationError

logger = logging.getLogger(__name__)


class OpenChannelsView(Set):
    """Read-only snapshot of the channels that were open when it was taken."""

    def __init__(self, channels: Iterable[Any] = ()):
        self._channels = frozenset(channels)

    def __contains__(self, channel: object) -> bool:
        return channel in self._channels

    def __iter__(self) -> Iterator[Any]:
        return iter(self._channels)

    def __len__(self) -> int:
        return len(self._channels)

    def _unsupported(self, *args, **kwargs):
        raise UnsupportedOperationError("The open channel view cannot be modified")

    add = discard = remove = pop = clear = update = _unsupported

    def __repr__(self) -> str:
        return f"OpenChannelsView({len(self._channels)} channel(s))"


class OpenChannelRegistry:
    """
    Thread-safe set of open channels.

    The lock only guards the set itself; channels are closed outside of it.
    Once ``close_all`` has run the registry refuses new channels.
    """

    def __init__(self) -> None:
        self._channels = set()
        self._lock = threading.Lock()
        self._closed = False

    def add(self, channel: Any) -> None:
        """
        Track a channel.

        Raises:
            ClosedFileSystemError: If ``close_all`` has already run
        """
        with self._lock:
            if self._closed:
                raise ClosedFileSystemError("Cannot register a channel on a closed filesystem")
            self._channels.add(channel)

    def remove(self, channel: Any) -> None:
        """Stop tracking a channel. Unknown channels are ignored."""
        with self._lock:
            self._channels.discard(channel)

    def snapshot(self) -> OpenChannelsView:
        with self._lock:
            return OpenChannelsView(self._channels)

    def close_all(self) -> List[Tuple[Any, Optional[BaseException]]]:
        """
        Close every tracked channel and refuse further registrations.

        Returns:
            One (channel, error) pair per channel; error is None when the close succeeded
        """
        with self._lock:
            self._closed = True
            channels = list(self._channels)
            self._channels.clear()

        results = []
        for channel in channels:
            try:
                channel.close()
                results.append((channel, None))
            except Exception as e:
                logger.warning(f"Failed to close channel {channel!r}: {e}")
                results.append((channel, e))
        return results

    @property
    def closed(self) -> bool:
        return self._closed

    def __contains__(self, channel: object) -> bool:
        with self._lock:
            return channel in self._channels

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)
