import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, List

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from models.config.settings import settings
from models.infrastructure.s3_client import S3Client
from models.revision_errors import DuplicateRevisionError, RevisionNotFoundError
from models.s3_models import (
    ActivateRequest,
    ActivateResponse,
    Revision,
    RevisionListRequest,
    UploadRequest,
    UploadResponse,
)
from services.revision_store import RevisionStore

if TYPE_CHECKING:
    from models.s3_models import S3Config

logger = logging.getLogger(__name__)


class Clients(BaseModel):
    s3: S3Client | None = None

    class Config:
        arbitrary_types_allowed = True

    def __init__(self, s3: "S3Config", client: Any = None, **kwargs):
        super().__init__(s3=S3Client(s3, client=client), **kwargs)


# noinspection PyShadowingNames,PyUnresolvedReferences
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.clients = Clients(s3=settings.to_s3_config())
    yield
    app.state.clients.s3 = None


app = FastAPI(lifespan=lifespan)


def _store() -> RevisionStore:
    clients = app.state.clients
    if clients.s3 is None:
        raise HTTPException(status_code=503, detail="S3 not initialized")
    return RevisionStore(clients.s3)


def _resolve_upload_path(file_path: str) -> Path:
    """Resolve an upload path inside the deploy root; anything else is a 400"""
    root = Path(settings.deploy_root).resolve()
    resolved = Path(root, file_path).resolve()
    if not resolved.is_relative_to(root):
        raise HTTPException(
            status_code=400, detail=f"File {file_path} is outside the deploy root"
        )
    if not resolved.is_file():
        raise HTTPException(status_code=400, detail=f"File {file_path} does not exist")
    return resolved


def _storage_error(e: Exception) -> HTTPException:
    if isinstance(e, ClientError):
        code = e.response.get("Error", {}).get("Code", "")
        detail = f"Storage error {code}: {e}"
    else:
        detail = f"Storage error: {e}"
    logger.error(detail)
    return HTTPException(status_code=502, detail=detail)


# noinspection PyUnresolvedReferences
@app.get("/health")
def health_check():
    clients = app.state.clients
    return {
        "status": "ok",
        "s3": "connected" if clients.s3 else "disconnected",
    }


@app.get("/revisions", response_model=List[Revision])
def list_revisions(bucket: str, prefix: str = "", file_pattern: str = "index.html"):
    store = _store()
    request = RevisionListRequest(bucket=bucket, prefix=prefix, file_pattern=file_pattern)
    try:
        return store.fetch_revisions(request)
    except (ClientError, BotoCoreError) as e:
        raise _storage_error(e)


@app.post("/revisions", response_model=UploadResponse, status_code=201)
def upload_revision(request: UploadRequest):
    store = _store()

    file_path = _resolve_upload_path(request.file_path)
    request = request.model_copy(update={"file_path": str(file_path)})

    try:
        key = store.upload(request)
    except DuplicateRevisionError as e:
        raise HTTPException(status_code=409, detail=e.to_dict())
    except (ClientError, BotoCoreError) as e:
        raise _storage_error(e)

    return UploadResponse(key=key)


@app.post("/revisions/activate", response_model=ActivateResponse)
def activate_revision(request: ActivateRequest):
    store = _store()

    try:
        index_key = store.activate(request)
    except RevisionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.to_dict())
    except (ClientError, BotoCoreError) as e:
        raise _storage_error(e)

    return ActivateResponse(revision=request.revision_key, index_key=index_key)
