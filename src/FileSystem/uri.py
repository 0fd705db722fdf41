"""
Root identifiers and s3:// URI parsing.
"""

from typing import NamedTuple, Tuple
from urllib.parse import urlsplit

from Configuration import S3Config


class RootId(NamedTuple):
    """The (scheme, bucket) pair identifying one filesystem."""

    scheme: str
    bucket: str

    def to_uri(self) -> str:
        return f"{self.scheme}://{self.bucket}"

    def __str__(self) -> str:
        return self.to_uri()


def parse_s3_uri(uri: str) -> Tuple[RootId, str]:
    """
    Split an s3:// URI into its root identifier and key.

    Args:
        uri: A URI such as 's3://mybucket/some/key.txt'

    Returns:
        The RootId and the key without its leading separator ('' for the bucket root)

    Raises:
        ValueError: If the scheme is not 's3' or the bucket is missing
    """
    parts = urlsplit(str(uri))
    scheme = parts.scheme.lower()
    if scheme != S3Config.SCHEME:
        raise ValueError(f"URI scheme must be '{S3Config.SCHEME}': {uri}")
    if not parts.netloc:
        raise ValueError(f"URI has no bucket: {uri}")
    return RootId(scheme, parts.netloc), parts.path.lstrip(S3Config.PATH_SEPARATOR)
