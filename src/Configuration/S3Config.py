"""
S3 filesystem constants.

This module contains the constants shared by the filesystem session, paths,
client providers and configuration loading.
"""


class S3Config:
    """Constants used by the S3 filesystem."""

    SCHEME: str = "s3"
    """URI scheme handled by the filesystem provider."""
    PATH_SEPARATOR: str = "/"
    """Separator between key segments. Also the string form of the root path."""
    CURRENT_DIR: str = "."
    PARENT_DIR: str = ".."

    # --- Attribute Views ---
    BASIC_VIEW: str = "basic"
    """Attribute view every filesystem must support (size, modification time)."""
    S3_VIEW: str = "s3"
    """Attribute view exposing object metadata (ETag, content type, storage class)."""

    # --- Client Settings ---
    DEFAULT_REGION: str = "us-east-1"
    """Region of the universal client used for bucket location lookups."""
    DEFAULT_ENDPOINT_PROTOCOL: str = "https"
    SIGNATURE_VERSION: str = "s3v4"
    BUCKET_REGION_HEADER: str = "x-amz-bucket-region"
    """Response header carrying the bucket region when GetBucketLocation is denied."""

    # --- Read Channel Settings ---
    DEFAULT_MAX_FRAGMENT_SIZE: int = 5 * 1024 * 1024
    """Size in bytes of each ranged GET issued by a read channel."""
    DEFAULT_MAX_FRAGMENT_NUMBER: int = 50
    """Maximum number of fragments a read channel keeps cached."""

    # --- Write Channel Settings ---
    WRITE_SPOOL_SIZE: int = 8 * 1024 * 1024
    """Bytes a write channel keeps in memory before spilling to a temporary file."""

    # --- Listing Settings ---
    DELETE_BATCH_SIZE: int = 1000
    """Maximum number of keys per DeleteObjects request."""

    # --- Environment Variables ---
    ENV_REGION: str = "AWS_REGION"
    ENV_ACCESS_KEY_ID: str = "AWS_ACCESS_KEY_ID"
    ENV_SECRET_ACCESS_KEY: str = "AWS_SECRET_ACCESS_KEY"
    ENV_ENDPOINT: str = "S3_SPI_ENDPOINT"
    ENV_ENDPOINT_PROTOCOL: str = "S3_SPI_ENDPOINT_PROTOCOL"
    ENV_FORCE_PATH_STYLE: str = "S3_SPI_FORCE_PATH_STYLE"
    ENV_MAX_FRAGMENT_SIZE: str = "S3_SPI_READ_MAX_FRAGMENT_SIZE"
    ENV_MAX_FRAGMENT_NUMBER: str = "S3_SPI_READ_MAX_FRAGMENT_NUMBER"

    YAML_ROOT_KEY: str = "s3"
    """Top-level key holding the filesystem settings in a YAML configuration file."""

    # --- Error Codes ---
    NOT_FOUND_CODES: frozenset = frozenset({"404", "NoSuchKey", "NotFound"})
    """ClientError codes meaning the object (not the bucket) is absent."""
    REGION_LOOKUP_FALLBACK_CODES: frozenset = frozenset({"AccessDenied", "PermanentRedirect", "AuthorizationHeaderMalformed", "301", "403"})
    """ClientError codes from GetBucketLocation that trigger the HeadBucket fallback."""


class RegularExpressions:
    """Collection of regular expressions used by the filesystem."""

    URI_SCHEME_REGEX: str = r'^([A-Za-z][A-Za-z0-9+.\-]*)://'
    """Regex matching a leading URI scheme (e.g. 's3://') in a path string."""

    BUCKET_NAME_REGEX: str = r'^[a-z0-9][a-z0-9.\-_]{1,61}[a-z0-9]$'
    """Regex for bucket names accepted by the filesystem (legacy names with underscores included)."""
