import gzip
import logging
import shutil
import tempfile
from typing import Any, Dict, List, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError
from pydantic import BaseModel, Field

from models.s3_models import (
    ObjectMeta,
    ObjectMetadata,
    S3Config,
    StoredObject,
)

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}

# Objects above this size are spooled to disk while being gzip encoded
GZIP_SPOOL_MAX_SIZE = 8 * 1024 * 1024


def is_not_found(error: Exception) -> bool:
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        return code in NOT_FOUND_CODES
    return False


class S3Client(BaseModel):
    config: S3Config
    client: Any = Field(default=None, exclude=True)

    class Config:
        arbitrary_types_allowed = True

    def __init__(self, config: S3Config, client: Any = None, **kwargs):
        super().__init__(config=config, **kwargs)
        if client is None:
            client = boto3.client(
                "s3",
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key,
                aws_secret_access_key=config.secret_key,
                config=Config(
                    signature_version="s3v4",
                    s3={"addressing_style": config.addressing_style},
                ),
                region_name=config.region,
            )
        self.client = client

    def upload_file(
        self,
        bucket: str,
        key: str,
        file_path: str,
        content_type: str,
        cache_control: str,
        acl: Optional[str] = None,
        gzip_encode: bool = False,
    ) -> None:
        """Stream a local file to bucket/key, gzip encoding it on the way if asked"""
        extra_args: Dict[str, str] = {
            "ContentType": content_type,
            "CacheControl": cache_control,
        }
        if acl:
            extra_args["ACL"] = acl

        with open(file_path, "rb") as source:
            if not gzip_encode:
                self.client.upload_fileobj(source, bucket, key, ExtraArgs=extra_args)
                return

            extra_args["ContentEncoding"] = "gzip"
            with tempfile.SpooledTemporaryFile(max_size=GZIP_SPOOL_MAX_SIZE) as spool:
                with gzip.GzipFile(fileobj=spool, mode="wb") as encoder:
                    shutil.copyfileobj(source, encoder)
                spool.seek(0)
                self.client.upload_fileobj(spool, bucket, key, ExtraArgs=extra_args)

    def copy_object(self, bucket: str, source_key: str, dest_key: str) -> None:
        self.client.copy_object(
            Bucket=bucket,
            CopySource={"Bucket": bucket, "Key": source_key},
            Key=dest_key,
        )

    def make_public(self, bucket: str, key: str) -> None:
        self.client.put_object_acl(Bucket=bucket, Key=key, ACL="public-read")

    def set_metadata(
        self, bucket: str, key: str, meta: ObjectMeta, acl: Optional[str] = None
    ) -> None:
        """Replace the metadata of an object in place.

        S3 has no metadata update call, so the object is copied onto itself
        with MetadataDirective=REPLACE. Content type and encoding are carried
        over from the current object unless meta overrides them. A self-copy
        resets the ACL, so pass acl to keep a non-private one.
        """
        current = self.get_metadata(bucket, key)

        params: Dict[str, Any] = {
            "Bucket": bucket,
            "CopySource": {"Bucket": bucket, "Key": key},
            "Key": key,
            "Metadata": dict(meta.metadata),
            "MetadataDirective": "REPLACE",
        }
        cache_control = meta.cache_control or current.cache_control
        content_type = meta.content_type or current.content_type
        content_encoding = meta.content_encoding or current.content_encoding
        if cache_control:
            params["CacheControl"] = cache_control
        if content_type:
            params["ContentType"] = content_type
        if content_encoding:
            params["ContentEncoding"] = content_encoding
        if acl:
            params["ACL"] = acl

        self.client.copy_object(**params)

    def list_objects(self, bucket: str, prefix: str) -> List[StoredObject]:
        paginator = self.client.get_paginator("list_objects_v2")
        objects = []
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                objects.append(
                    StoredObject(
                        key=obj["Key"],
                        last_modified=obj["LastModified"],
                        size=obj.get("Size", 0),
                    )
                )
        logger.debug(f"Listed {len(objects)} objects under {bucket}/{prefix}")
        return objects

    def get_metadata(self, bucket: str, key: str) -> ObjectMetadata:
        """HEAD an object; raises ClientError (404 included) when it cannot be read"""
        response = self.client.head_object(Bucket=bucket, Key=key)
        return ObjectMetadata(
            key=key,
            content_type=response.get("ContentType"),
            cache_control=response.get("CacheControl"),
            content_encoding=response.get("ContentEncoding"),
            metadata=response.get("Metadata", {}),
        )
