from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


class BasicFileAttributes(BaseModel):
    """Attributes of the 'basic' view, derived from object metadata."""
    model_config = ConfigDict(frozen=True)

    size: int = Field(0, description="Object size in bytes; 0 for directories.")
    last_modified_time: Optional[datetime] = Field(None, description="Object LastModified, when known.")
    is_regular_file: bool = False
    is_directory: bool = False
    file_key: Optional[str] = Field(None, description="Stable identity of the object content (its ETag).")

    @property
    def is_symbolic_link(self) -> bool:
        return False

    @property
    def is_other(self) -> bool:
        return False


class S3ObjectAttributes(BasicFileAttributes):
    """Attributes of the 's3' view: the basic view plus object metadata."""
    etag: Optional[str] = None
    content_type: Optional[str] = None
    storage_class: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict, description="User-defined object metadata.")

    @classmethod
    def from_head_object(cls, response: Mapping[str, Any]) -> "S3ObjectAttributes":
        """Build attributes from a HeadObject response."""
        etag = response.get("ETag")
        return cls(
            size=response.get("ContentLength", 0),
            last_modified_time=response.get("LastModified"),
            is_regular_file=True,
            file_key=etag,
            etag=etag,
            content_type=response.get("ContentType"),
            storage_class=response.get("StorageClass"),
            metadata=dict(response.get("Metadata") or {}),
        )

    def to_basic(self) -> BasicFileAttributes:
        return BasicFileAttributes(
            size=self.size,
            last_modified_time=self.last_modified_time,
            is_regular_file=self.is_regular_file,
            is_directory=self.is_directory,
            file_key=self.file_key,
        )
