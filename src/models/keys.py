from typing import Optional

from pydantic import BaseModel, ConfigDict


def join_key(prefix: Optional[str], key: str) -> str:
    """Join a bucket prefix and a key; an empty prefix adds no separator"""
    if not prefix:
        return key
    return f"{prefix}/{key}"


class KeyGenerator(BaseModel):
    prefix: str = ""
    file_pattern: str

    model_config = ConfigDict(frozen=True)

    def index_key(self) -> str:
        return join_key(self.prefix, self.file_pattern)

    def revision_key(self, revision_key: str) -> str:
        return join_key(self.prefix, f"{self.file_pattern}:{revision_key}")

    def revision_prefix(self) -> str:
        return join_key(self.prefix, f"{self.file_pattern}:")
