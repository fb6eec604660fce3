import tempfile
from pathlib import Path
from typing import Any, Dict
from urllib.parse import quote

from fastapi import APIRouter, Body, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from config import MAX_ARCHIVE_BYTES, SESSION_TTL_SECONDS
from models.common_models import ConfirmImportRequest
from services.archive_writer import archive_filename, write_archive
from services.asset_pool import AssetPool
from services.dependencies import (
    get_asset_pool,
    get_project_store,
    get_session_store,
    get_staging_root,
)
from services.file_upload_service import ZIP_MIME_TYPES, save_uploaded_file
from services.project_store import ProjectStore
from services.reconciliation import confirm_import, reject_import
from services.session_service import SessionStore, sweep_expired_sessions
from services.stager import begin_import

router = APIRouter(prefix="/showcomposer/api", tags=["projects"])

_SPOOL_BYTES = 8 * 1024 * 1024
_READ_CHUNK = 64 * 1024

def attachment_disposition(filename: str) -> str:
    """
    Content-Disposition for a download. Names that are not plain ASCII get an
    RFC 5987 `filename*` next to an ASCII-only `filename` fallback.
    """
    quoted = quote(filename)
    if quoted == filename:
        return f'attachment; filename="{filename}"'
    fallback = "".join(c for c in filename if 32 <= ord(c) < 127 and c not in '"\\').strip()
    return f"attachment; filename=\"{fallback or 'project.zip'}\"; filename*=utf-8''{quoted}"

@router.post("/package")
async def package_project(
    document: Dict[str, Any] = Body(...),
    pool: AssetPool = Depends(get_asset_pool),
):
    zip_name = archive_filename(document)
    buffer = tempfile.SpooledTemporaryFile(max_size=_SPOOL_BYTES)
    try:
        await run_in_threadpool(write_archive, document, pool, buffer)
    except Exception:
        buffer.close()
        raise
    buffer.seek(0)

    return StreamingResponse(
        iter(lambda: buffer.read(_READ_CHUNK), b""),
        media_type="application/zip",
        headers={"Content-Disposition": attachment_disposition(zip_name)},
        background=BackgroundTask(buffer.close),
    )

@router.post("/projects/save", status_code=201)
async def save_project(
    document: Dict[str, Any] = Body(...),
    store: ProjectStore = Depends(get_project_store),
):
    await run_in_threadpool(store.save_document, document)
    return {"message": "Project saved successfully."}

@router.get("/projects")
async def list_projects(store: ProjectStore = Depends(get_project_store)):
    projects = await run_in_threadpool(store.list)
    return [p.model_dump(by_alias=True, mode="json") for p in projects]

@router.post("/projects/load")
async def load_project(
    file: UploadFile = File(...),
    sessions: SessionStore = Depends(get_session_store),
    staging_root: Path = Depends(get_staging_root),
):
    await run_in_threadpool(sweep_expired_sessions, sessions, SESSION_TTL_SECONDS, staging_root)

    uploaded = await run_in_threadpool(
        save_uploaded_file, file, staging_root, ZIP_MIME_TYPES, MAX_ARCHIVE_BYTES
    )
    session = await run_in_threadpool(begin_import, uploaded.path, sessions, staging_root)
    # Staged, not yet confirmed; carries _tempImportId for the confirm call
    return session.document

@router.post("/projects/confirm-import")
async def confirm_project_import(
    req: ConfirmImportRequest,
    pool: AssetPool = Depends(get_asset_pool),
    sessions: SessionStore = Depends(get_session_store),
):
    if req.confirm:
        document = await run_in_threadpool(confirm_import, req.session_id, pool, sessions)
        return {"success": True, "projectData": document}

    await run_in_threadpool(reject_import, req.session_id, sessions)
    return {"success": True, "message": "Import cancelled"}
