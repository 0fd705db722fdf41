"""
Paths within an S3 filesystem.

An S3Path is an immutable sequence of key segments bound to one filesystem
session. Paths are normalized when they are built, so equality, hashing and
ordering work on segments rather than on the raw strings callers passed in.
"""

import re
from functools import total_ordering
from typing import TYPE_CHECKING, Iterator, Optional, Sequence, Tuple, Union

from Configuration import S3Config, RegularExpressions
from FileSystem.exceptions import InvalidPathError
from FileSystem.uri import parse_s3_uri

if TYPE_CHECKING:
    from FileSystem.s3 import S3FileSystem

SEPARATOR = S3Config.PATH_SEPARATOR


def _normalize(raw_segments: Sequence[str], absolute: bool) -> Tuple[str, ...]:
    segments = []
    for segment in raw_segments:
        if segment in ("", S3Config.CURRENT_DIR):
            continue
        if segment == S3Config.PARENT_DIR:
            if segments and segments[-1] != S3Config.PARENT_DIR:
                segments.pop()
            elif not absolute:
                segments.append(segment)
            # '..' above the root of an absolute path stays at the root
            continue
        segments.append(segment)
    return tuple(segments)


@total_ordering
class S3Path:
    """A location within one S3 filesystem."""

    __slots__ = ("_fs", "_segments", "_absolute", "_directory")

    def __init__(self, filesystem: "S3FileSystem", segments: Sequence[str], absolute: bool, directory: bool = False):
        self._fs = filesystem
        self._absolute = absolute
        self._segments = _normalize(segments, absolute)
        self._directory = directory or (absolute and not self._segments)

    @classmethod
    def get_path(cls, filesystem: "S3FileSystem", first: str, *more: str) -> "S3Path":
        """
        Build a path by joining strings with the separator.

        Args:
            filesystem: The owning filesystem
            first: The first part; may be an 's3://bucket/key' URI of the same bucket
            *more: Further parts joined with the separator

        Returns:
            The normalized path

        Raises:
            InvalidPathError: On NUL characters, a foreign scheme, a different bucket
                or a URI in any part but the first
        """
        parts = (first,) + more
        for part in parts:
            if not isinstance(part, str):
                raise InvalidPathError(repr(part), "Path parts must be strings")
            if "\x00" in part:
                raise InvalidPathError(part, "Path contains a NUL character")
        for part in more:
            if re.match(RegularExpressions.URI_SCHEME_REGEX, part):
                raise InvalidPathError(part, "Only the first path part may be a URI")

        match = re.match(RegularExpressions.URI_SCHEME_REGEX, first)
        if match:
            if match.group(1).lower() != S3Config.SCHEME:
                raise InvalidPathError(first, "Path scheme does not match the filesystem")
            try:
                root_id, key = parse_s3_uri(first)
            except ValueError as e:
                raise InvalidPathError(first, str(e)) from e
            if root_id.bucket != filesystem.bucket_name:
                raise InvalidPathError(first, f"Path bucket does not match '{filesystem.bucket_name}'")
            first = SEPARATOR + key

        joined = SEPARATOR.join(part for part in (first,) + more if part)
        raw_segments = joined.split(SEPARATOR)
        directory = joined.endswith(SEPARATOR) or raw_segments[-1] in (S3Config.CURRENT_DIR, S3Config.PARENT_DIR)
        return cls(filesystem, raw_segments, joined.startswith(SEPARATOR), directory=directory)

    # --- Properties ---

    @property
    def file_system(self) -> "S3FileSystem":
        return self._fs

    @property
    def parts(self) -> Tuple[str, ...]:
        """The normalized key segments."""
        return self._segments

    @property
    def name(self) -> str:
        """The last segment, or '' for the root."""
        return self._segments[-1] if self._segments else ""

    @property
    def key(self) -> str:
        """
        The object key this path maps to.

        Keys never start with the separator; directories end with one. The
        root maps to the empty key.
        """
        key = SEPARATOR.join(self._segments)
        if self._segments and self._directory:
            key += SEPARATOR
        return key

    @property
    def bucket_name(self) -> str:
        return self._fs.bucket_name

    def is_absolute(self) -> bool:
        return self._absolute

    def is_root(self) -> bool:
        return self._absolute and not self._segments

    def is_directory(self) -> bool:
        """True for the root and for paths written with a trailing separator."""
        return self._directory

    # --- Navigation ---

    def _derive(self, segments: Sequence[str], absolute: bool, directory: bool = False) -> "S3Path":
        return S3Path(self._fs, segments, absolute, directory)

    def _coerce(self, other: Union["S3Path", str]) -> "S3Path":
        if isinstance(other, str):
            return S3Path.get_path(self._fs, other)
        if not isinstance(other, S3Path):
            raise TypeError(f"Expected S3Path or str, got {type(other).__name__}")
        if other._fs.root_id != self._fs.root_id:
            raise InvalidPathError(str(other), "Path belongs to a different filesystem")
        return other

    def get_root(self) -> Optional["S3Path"]:
        return self._derive((), True) if self._absolute else None

    def get_file_name(self) -> Optional["S3Path"]:
        if not self._segments:
            return None
        return self._derive(self._segments[-1:], False, self._directory)

    def get_parent(self) -> Optional["S3Path"]:
        if not self._segments:
            return None
        if len(self._segments) == 1:
            return self.get_root()
        return self._derive(self._segments[:-1], self._absolute, True)

    def get_name_count(self) -> int:
        return len(self._segments)

    def get_name(self, index: int) -> "S3Path":
        if index < 0 or index >= len(self._segments):
            raise IndexError(f"Name index out of range: {index}")
        last = index == len(self._segments) - 1
        return self._derive((self._segments[index],), False, self._directory if last else True)

    def subpath(self, begin: int, end: int) -> "S3Path":
        if begin < 0 or end > len(self._segments) or begin >= end:
            raise IndexError(f"Invalid subpath range: [{begin}, {end})")
        last = end == len(self._segments)
        return self._derive(self._segments[begin:end], False, self._directory if last else True)

    def starts_with(self, other: Union["S3Path", str]) -> bool:
        other = self._coerce(other)
        if other._absolute != self._absolute:
            return False
        return self._segments[:len(other._segments)] == other._segments

    def ends_with(self, other: Union["S3Path", str]) -> bool:
        other = self._coerce(other)
        if other._absolute:
            return self == other
        if not other._segments:
            return not self._segments
        return self._segments[-len(other._segments):] == other._segments

    def normalize(self) -> "S3Path":
        # Paths are normalized on construction.
        return self

    def resolve(self, other: Union["S3Path", str]) -> "S3Path":
        """Resolve ``other`` against this path; absolute paths are returned unchanged."""
        other = self._coerce(other)
        if other._absolute:
            return other
        if not other._segments:
            return self
        return self._derive(self._segments + other._segments, self._absolute, other._directory)

    def resolve_sibling(self, other: Union["S3Path", str]) -> "S3Path":
        parent = self.get_parent()
        other = self._coerce(other)
        return other if parent is None else parent.resolve(other)

    def relativize(self, other: Union["S3Path", str]) -> "S3Path":
        """
        Build the relative path that leads from this path to ``other``.

        Raises:
            InvalidPathError: If one path is absolute and the other is not
        """
        other = self._coerce(other)
        if other._absolute != self._absolute:
            raise InvalidPathError(str(other), "Cannot relativize an absolute and a relative path")
        common = 0
        for mine, theirs in zip(self._segments, other._segments):
            if mine != theirs:
                break
            common += 1
        ups = (S3Config.PARENT_DIR,) * (len(self._segments) - common)
        segments = ups + other._segments[common:]
        return self._derive(segments, False, other._directory and bool(segments))

    def to_absolute_path(self) -> "S3Path":
        if self._absolute:
            return self
        return self._derive(self._segments, True, self._directory)

    def to_uri(self) -> str:
        return f"{self._fs.root_id.to_uri()}{SEPARATOR}{self.to_absolute_path().key}"

    # --- Dunder protocol ---

    def __truediv__(self, other: Union["S3Path", str]) -> "S3Path":
        return self.resolve(other)

    def __iter__(self) -> Iterator["S3Path"]:
        for index in range(len(self._segments)):
            yield self.get_name(index)

    def _compare_key(self) -> Tuple:
        return (self._fs.root_id, not self._absolute, self._segments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, S3Path):
            return NotImplemented
        return self._compare_key() == other._compare_key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, S3Path):
            return NotImplemented
        return self._compare_key() < other._compare_key()

    def __hash__(self) -> int:
        return hash(self._compare_key())

    def __str__(self) -> str:
        text = SEPARATOR.join(self._segments)
        if self._segments and self._directory:
            text += SEPARATOR
        return SEPARATOR + text if self._absolute else text

    def __repr__(self) -> str:
        return f"S3Path({self._fs.root_id.to_uri()!r}, {str(self)!r})"
