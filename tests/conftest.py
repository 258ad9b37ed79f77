import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
from botocore.exceptions import ClientError

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from models.infrastructure.s3_client import S3Client
from models.s3_models import S3Config
from services.revision_store import RevisionStore


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Configure logging for all test sessions"""
    log_level_str = os.getenv("TEST_LOG_LEVEL", "INFO")
    log_level = logging.DEBUG if log_level_str == 'DEBUG' else logging.INFO

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S',
        force=True
    )


def client_error(code: str, operation: str, message: str = "") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message or code}}, operation)


class MockPaginator:
    def __init__(self, s3: "MockS3", page_size: int = 2):
        self.s3 = s3
        self.page_size = page_size

    def paginate(self, Bucket: str, Prefix: str = ""):
        if self.s3.fail_list:
            raise client_error("AccessDenied", "ListObjectsV2")
        keys = sorted(
            key for bucket, key in self.s3.objects if bucket == Bucket and key.startswith(Prefix)
        )
        if not keys:
            yield {"KeyCount": 0}
            return
        for start in range(0, len(keys), self.page_size):
            yield {
                "Contents": [
                    {
                        "Key": key,
                        "LastModified": self.s3.objects[(Bucket, key)]["last_modified"],
                        "Size": len(self.s3.objects[(Bucket, key)]["body"]),
                    }
                    for key in keys[start:start + self.page_size]
                ]
            }


class MockS3:
    """In-memory stand-in for a boto3 S3 client"""

    def __init__(self):
        self.objects: Dict[tuple, Dict[str, Any]] = {}
        self.clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.fail_acl = False
        self.fail_head = False
        self.fail_list = False
        self.writes = 0

    def _tick(self) -> datetime:
        self.clock += timedelta(seconds=1)
        return self.clock

    def _get(self, bucket: str, key: str, operation: str) -> Dict[str, Any]:
        if (bucket, key) not in self.objects:
            raise client_error("NoSuchKey", operation)
        return self.objects[(bucket, key)]

    def put(
        self,
        bucket: str,
        key: str,
        body: bytes = b"",
        last_modified: Optional[datetime] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        self.objects[(bucket, key)] = {
            "body": body,
            "last_modified": last_modified or self._tick(),
            "content_type": "text/html",
            "cache_control": None,
            "content_encoding": None,
            "metadata": metadata or {},
            "acl": "private",
        }

    def upload_fileobj(self, fileobj, bucket: str, key: str, ExtraArgs=None):
        extra = ExtraArgs or {}
        self.writes += 1
        self.objects[(bucket, key)] = {
            "body": fileobj.read(),
            "last_modified": self._tick(),
            "content_type": extra.get("ContentType", "binary/octet-stream"),
            "cache_control": extra.get("CacheControl"),
            "content_encoding": extra.get("ContentEncoding"),
            "metadata": {},
            "acl": extra.get("ACL", "private"),
        }

    def copy_object(
        self,
        Bucket: str,
        CopySource: Dict[str, str],
        Key: str,
        MetadataDirective: str = "COPY",
        Metadata: Optional[Dict[str, str]] = None,
        CacheControl: Optional[str] = None,
        ContentType: Optional[str] = None,
        ContentEncoding: Optional[str] = None,
        ACL: Optional[str] = None,
    ):
        source = dict(self._get(CopySource["Bucket"], CopySource["Key"], "CopyObject"))
        if MetadataDirective == "REPLACE":
            source["metadata"] = dict(Metadata or {})
            source["cache_control"] = CacheControl
            source["content_type"] = ContentType or "binary/octet-stream"
            source["content_encoding"] = ContentEncoding
        else:
            source["metadata"] = dict(source["metadata"])
        source["acl"] = ACL or "private"
        source["last_modified"] = self._tick()
        self.writes += 1
        self.objects[(Bucket, Key)] = source

    def put_object_acl(self, Bucket: str, Key: str, ACL: str):
        if self.fail_acl:
            raise client_error("AccessDenied", "PutObjectAcl")
        self._get(Bucket, Key, "PutObjectAcl")["acl"] = ACL

    def head_object(self, Bucket: str, Key: str):
        if self.fail_head:
            raise client_error("403", "HeadObject", "Forbidden")
        if (Bucket, Key) not in self.objects:
            raise client_error("404", "HeadObject", "Not Found")
        obj = self.objects[(Bucket, Key)]
        response = {
            "ContentType": obj["content_type"],
            "LastModified": obj["last_modified"],
            "Metadata": dict(obj["metadata"]),
        }
        if obj["cache_control"]:
            response["CacheControl"] = obj["cache_control"]
        if obj["content_encoding"]:
            response["ContentEncoding"] = obj["content_encoding"]
        return response

    def get_paginator(self, operation_name: str) -> MockPaginator:
        assert operation_name == "list_objects_v2"
        return MockPaginator(self)


@pytest.fixture
def mock_s3() -> MockS3:
    return MockS3()


@pytest.fixture
def s3_client(mock_s3: MockS3) -> S3Client:
    return S3Client(S3Config(), client=mock_s3)


@pytest.fixture
def store(s3_client: S3Client) -> RevisionStore:
    return RevisionStore(s3_client)


@pytest.fixture
def asset(tmp_path: Path) -> Path:
    path = tmp_path / "index.html"
    path.write_text("<html><body>hello</body></html>")
    return path
