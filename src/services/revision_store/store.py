import logging
import mimetypes
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from models.infrastructure.s3_client import S3Client, is_not_found
from models.keys import KeyGenerator
from models.revision_errors import DuplicateRevisionError, RevisionNotFoundError
from models.s3_models import (
    NO_CACHE,
    ActivateRequest,
    ObjectMetadata,
    Revision,
    RevisionListRequest,
    UploadRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/html"


class RevisionStore:
    """Uploads revisions of a file pattern and activates one of them as the index.

    upload returns the key of the written revision object and activate returns
    the index key the revision was copied onto. Refusals raise
    DuplicateRevisionError or RevisionNotFoundError; storage errors propagate.
    """

    def __init__(self, s3_client: S3Client):
        self.s3 = s3_client

    def fetch_revisions(self, request: RevisionListRequest) -> List[Revision]:
        """List uploaded revisions, newest first, flagging the active one"""
        keys = KeyGenerator(prefix=request.prefix, file_pattern=request.file_pattern)
        revision_prefix = keys.revision_prefix()

        with ThreadPoolExecutor(max_workers=2) as executor:
            objects_future = executor.submit(
                self.s3.list_objects, request.bucket, revision_prefix
            )
            current_future = executor.submit(
                self._current_index, request.bucket, keys.index_key()
            )
            objects = objects_future.result()
            current = current_future.result()

        active_revision = current.metadata.get("revision") if current else None

        revisions = [
            Revision(
                revision=obj.key[len(revision_prefix):],
                timestamp=obj.last_modified,
                active=bool(active_revision) and active_revision in obj.key,
            )
            for obj in objects
        ]
        revisions.sort(key=lambda revision: revision.timestamp, reverse=True)
        return revisions

    def _current_index(self, bucket: str, index_key: str) -> Optional[ObjectMetadata]:
        try:
            return self.s3.get_metadata(bucket, index_key)
        except ClientError as e:
            if is_not_found(e):
                return None
            raise

    def upload(self, request: UploadRequest) -> str:
        keys = KeyGenerator(prefix=request.prefix, file_pattern=request.file_pattern)
        revision_key = keys.revision_key(request.revision_key)

        revisions = self.fetch_revisions(request)
        already_uploaded = any(r.revision == request.revision_key for r in revisions)
        if already_uploaded and not request.allow_overwrite:
            raise DuplicateRevisionError(
                request.bucket, revision_key, request.revision_key
            )

        content_type, _ = mimetypes.guess_type(request.file_path)
        self.s3.upload_file(
            bucket=request.bucket,
            key=revision_key,
            file_path=request.file_path,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            cache_control=NO_CACHE,
            acl=request.acl,
            gzip_encode=request.file_pattern in request.gzipped_file_paths,
        )
        logger.debug(f"✔  {revision_key}")
        return revision_key

    def activate(self, request: ActivateRequest) -> str:
        keys = KeyGenerator(prefix=request.prefix, file_pattern=request.file_pattern)
        revision_key = keys.revision_key(request.revision_key)
        index_key = keys.index_key()

        revisions = self.fetch_revisions(request)
        if not any(r.revision == request.revision_key for r in revisions):
            raise RevisionNotFoundError(
                request.bucket, revision_key, request.revision_key
            )

        self.s3.copy_object(request.bucket, revision_key, index_key)

        meta = request.meta.model_copy(deep=True)
        if not meta.cache_control:
            meta.cache_control = NO_CACHE
        meta.metadata["revision"] = request.revision_key

        acl = None
        if request.make_public:
            try:
                self.s3.make_public(request.bucket, index_key)
                acl = "public-read"
            except (ClientError, BotoCoreError) as e:
                # Activation still goes ahead with a private index object
                logger.warning(f"Could not make {request.bucket}/{index_key} public: {e}")

        self.s3.set_metadata(request.bucket, index_key, meta, acl=acl)
        logger.info(f"✔  {revision_key} => {index_key}")
        return index_key
