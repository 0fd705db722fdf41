"""
Configuration model for an S3 filesystem session.
"""

import os
import re
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .S3Config import S3Config, RegularExpressions


class S3FileSystemConfiguration(BaseModel):
    """Settings bundle for one filesystem session: bucket, endpoint, credential hints and I/O tuning."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    bucket_name: Optional[str] = Field(None, description="The bucket backing the filesystem.")
    region: Optional[str] = Field(
        None,
        description="Region of the bucket. When unset the region is looked up from the bucket location."
    )
    endpoint: Optional[str] = Field(None, description="Custom endpoint host (e.g. 'minio:9000').")
    endpoint_protocol: str = Field(S3Config.DEFAULT_ENDPOINT_PROTOCOL, description="Protocol used with a custom endpoint.")
    force_path_style: bool = Field(False, description="Use path-style addressing instead of virtual-hosted style.")
    access_key_id: Optional[str] = Field(None, description="Explicit access key. Defaults to the boto3 credential chain.")
    secret_access_key: Optional[str] = Field(None, repr=False, description="Explicit secret key.")
    read_only: bool = Field(False, description="Reject write-type operations on the filesystem.")
    max_fragment_size: int = Field(S3Config.DEFAULT_MAX_FRAGMENT_SIZE, gt=0, description="Bytes per ranged read.")
    max_fragment_number: int = Field(S3Config.DEFAULT_MAX_FRAGMENT_NUMBER, gt=0, description="Fragments cached per read channel.")

    @field_validator("bucket_name")
    @classmethod
    def _validate_bucket_name(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not re.match(RegularExpressions.BUCKET_NAME_REGEX, value):
            raise ValueError(f"Invalid bucket name: '{value}'")
        return value

    @field_validator("endpoint_protocol")
    @classmethod
    def _validate_protocol(cls, value: str) -> str:
        value = value.lower()
        if value not in ("http", "https"):
            raise ValueError(f"Endpoint protocol must be 'http' or 'https', got '{value}'")
        return value

    @property
    def endpoint_url(self) -> Optional[str]:
        """The endpoint as a URL suitable for boto3, or None for the AWS default endpoints."""
        if not self.endpoint:
            return None
        if "://" in self.endpoint:
            return self.endpoint
        return f"{self.endpoint_protocol}://{self.endpoint}"

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "S3FileSystemConfiguration":
        """
        Return a copy of this configuration with the given values replaced.

        Unlike ``model_copy`` the result is validated again.
        """
        if not overrides:
            return self
        data = self.model_dump()
        data.update(overrides)
        return type(self).model_validate(data)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "S3FileSystemConfiguration":
        """
        Build a configuration from environment variables.

        Args:
            environ: The mapping to read from (default: os.environ)
            **overrides: Values taking precedence over the environment

        Returns:
            A validated configuration
        """
        environ = os.environ if environ is None else environ
        env_map = {
            "region": S3Config.ENV_REGION,
            "endpoint": S3Config.ENV_ENDPOINT,
            "endpoint_protocol": S3Config.ENV_ENDPOINT_PROTOCOL,
            "force_path_style": S3Config.ENV_FORCE_PATH_STYLE,
            "access_key_id": S3Config.ENV_ACCESS_KEY_ID,
            "secret_access_key": S3Config.ENV_SECRET_ACCESS_KEY,
            "max_fragment_size": S3Config.ENV_MAX_FRAGMENT_SIZE,
            "max_fragment_number": S3Config.ENV_MAX_FRAGMENT_NUMBER,
        }
        data = {field: environ[name] for field, name in env_map.items() if environ.get(name)}
        data.update(overrides)
        return cls.model_validate(data)
