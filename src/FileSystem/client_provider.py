"""
S3 client providers.

A client provider hands the filesystem a boto3 S3 client for its bucket.
The default provider resolves the bucket region once and caches one client
per bucket; errors from the lookup propagate to the caller unchanged.
"""

import logging
import threading
from typing import Any, Dict, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from Configuration import S3Config, S3FileSystemConfiguration


class S3ClientProvider:
    """Creates and caches S3 clients per bucket."""

    def __init__(self, configuration: Optional[S3FileSystemConfiguration] = None):
        self.configuration = configuration or S3FileSystemConfiguration()
        self.logger = logging.getLogger(__name__)
        self._session = None
        self._clients: Dict[str, Any] = {}
        self._universal_client = None
        # boto3 sessions are not thread-safe; clients are. The session is
        # created along with the first client.
        self._session_lock = threading.Lock()
        self._cache_lock = threading.Lock()

    def _create_client(self, region: str) -> Any:
        config = Config(
            signature_version=S3Config.SIGNATURE_VERSION,
            s3={"addressing_style": "path" if self.configuration.force_path_style else "auto"},
        )
        with self._session_lock:
            if self._session is None:
                self._session = boto3.session.Session(
                    aws_access_key_id=self.configuration.access_key_id,
                    aws_secret_access_key=self.configuration.secret_access_key,
                )
            return self._session.client(
                "s3",
                region_name=region,
                endpoint_url=self.configuration.endpoint_url,
                config=config,
            )

    def universal_client(self) -> Any:
        """The client used for bucket location lookups."""
        client = self._universal_client
        if client is None:
            client = self._create_client(self.configuration.region or S3Config.DEFAULT_REGION)
            self._universal_client = client
        return client

    def bucket_region(self, bucket_name: str) -> str:
        """
        Determine the region of a bucket.

        A configured region or custom endpoint short-circuits the lookup.
        Otherwise GetBucketLocation is asked; if that is denied or redirected,
        the region is read from the HeadBucket response headers.

        Raises:
            botocore.exceptions.ClientError: If the bucket does not exist or cannot be reached
        """
        if self.configuration.region:
            return self.configuration.region
        if self.configuration.endpoint:
            return S3Config.DEFAULT_REGION

        client = self.universal_client()
        try:
            response = client.get_bucket_location(Bucket=bucket_name)
            region = response.get("LocationConstraint") or S3Config.DEFAULT_REGION
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code not in S3Config.REGION_LOOKUP_FALLBACK_CODES:
                raise
            self.logger.debug(f"GetBucketLocation failed for {bucket_name} ({code}); trying HeadBucket")
            region = self._region_from_head_bucket(client, bucket_name, e)

        self.logger.info(f"Bucket {bucket_name} is in region {region}")
        return region

    def _region_from_head_bucket(self, client: Any, bucket_name: str, cause: ClientError) -> str:
        try:
            response = client.head_bucket(Bucket=bucket_name)
            headers = response.get("ResponseMetadata", {}).get("HTTPHeaders", {})
        except ClientError as e:
            headers = e.response.get("ResponseMetadata", {}).get("HTTPHeaders", {})
            if S3Config.BUCKET_REGION_HEADER not in headers:
                raise
        region = headers.get(S3Config.BUCKET_REGION_HEADER)
        if not region:
            raise cause
        return region

    def get_client(self, bucket_name: str) -> Any:
        """
        Get the client for a bucket, creating it on first use.

        Args:
            bucket_name: The bucket the client will address

        Returns:
            A boto3 S3 client

        Raises:
            botocore.exceptions.ClientError: If the bucket region cannot be resolved (e.g. NoSuchBucket)
            botocore.exceptions.BotoCoreError: On credential or connectivity failures
        """
        with self._cache_lock:
            client = self._clients.get(bucket_name)
        if client is not None:
            return client

        # Network lookups happen outside the cache lock.
        client = self._create_client(self.bucket_region(bucket_name))
        with self._cache_lock:
            return self._clients.setdefault(bucket_name, client)

    def clear(self) -> None:
        """Forget all cached clients."""
        with self._cache_lock:
            self._clients.clear()
        self._universal_client = None


class FixedS3ClientProvider(S3ClientProvider):
    """Provider that always returns the same client, whatever the bucket."""

    def __init__(self, client: Any, configuration: Optional[S3FileSystemConfiguration] = None):
        super().__init__(configuration)
        self.client = client

    def universal_client(self) -> Any:
        return self.client

    def get_client(self, bucket_name: str) -> Any:
        return self.client
