from enum import Enum


class RevisionErrorKind(str, Enum):
    """Reasons a revision operation is refused before touching the bucket"""

    DUPLICATE_REVISION = "duplicate-revision"
    REVISION_NOT_FOUND = "revision-not-found"


class RevisionError(Exception):
    kind: RevisionErrorKind

    def __init__(self, message: str, bucket: str, key: str, revision_key: str):
        super().__init__(message)
        self.bucket = bucket
        self.key = key
        self.revision_key = revision_key

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": str(self),
            "bucket": self.bucket,
            "key": self.key,
            "revision_key": self.revision_key,
        }


class DuplicateRevisionError(RevisionError):
    kind = RevisionErrorKind.DUPLICATE_REVISION

    def __init__(self, bucket: str, key: str, revision_key: str):
        super().__init__(
            f"Revision {revision_key} already uploaded to {bucket}/{key} "
            "(set allow_overwrite to replace it)",
            bucket,
            key,
            revision_key,
        )


class RevisionNotFoundError(RevisionError):
    kind = RevisionErrorKind.REVISION_NOT_FOUND

    def __init__(self, bucket: str, key: str, revision_key: str):
        super().__init__(
            f"Revision {revision_key} not found at {bucket}/{key}",
            bucket,
            key,
            revision_key,
        )
