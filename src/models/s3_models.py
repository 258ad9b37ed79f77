from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

NO_CACHE = "max-age=0, no-cache"


class S3Config(BaseModel):
    endpoint_url: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"
    addressing_style: str = "path"


class StoredObject(BaseModel):
    """One entry of a bucket listing"""

    key: str
    last_modified: datetime
    size: int = 0


class ObjectMetadata(BaseModel):
    """Result of a HEAD request on a single object"""

    key: str
    content_type: Optional[str] = None
    cache_control: Optional[str] = None
    content_encoding: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class ObjectMeta(BaseModel):
    """Metadata written onto the index object when a revision is activated"""

    cache_control: Optional[str] = None
    content_type: Optional[str] = None
    content_encoding: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class Revision(BaseModel):
    revision: str = Field(..., description="Revision key, e.g. a git sha")
    timestamp: datetime
    active: bool = False


class RevisionListRequest(BaseModel):
    bucket: str
    prefix: str = ""
    file_pattern: str = "index.html"


class UploadRequest(RevisionListRequest):
    revision_key: str
    file_path: str
    acl: Optional[str] = None
    allow_overwrite: bool = False
    gzipped_file_paths: List[str] = Field(
        default_factory=list,
        description="File patterns that are stored gzip encoded",
    )


class ActivateRequest(RevisionListRequest):
    revision_key: str
    meta: ObjectMeta = Field(default_factory=ObjectMeta)
    make_public: bool = False


class UploadResponse(BaseModel):
    key: str


class ActivateResponse(BaseModel):
    revision: str
    index_key: str
