import json
import logging
import uuid
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Union

from models.session_models import SESSION_ANNOTATION, StagingSession
from services.archive_writer import DOCUMENT_MEMBER
from services.errors import ArchiveFormatError, StorageError
from services.session_service import WORKSPACE_PREFIX, SessionStore, remove_workspace

logger = logging.getLogger(__name__)


def _check_member(name: str):
    path = PurePosixPath(name.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts or (path.parts and path.parts[0].endswith(":")):
        raise ArchiveFormatError(f"Archive member '{name}' points outside the archive.")


def _extract(archive_path: Path, workspace: Path):
    try:
        with zipfile.ZipFile(archive_path) as zf:
            for name in zf.namelist():
                _check_member(name)
            zf.extractall(workspace)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, zlib.error, NotImplementedError):
        raise ArchiveFormatError("Uploaded file is not a valid zip archive.")
    except OSError as e:
        raise StorageError(f"Could not extract archive: {e.strerror}")


def read_staged_document(workspace: Union[str, Path]) -> Dict[str, Any]:
    path = Path(workspace) / DOCUMENT_MEMBER
    if not path.is_file():
        raise ArchiveFormatError(f"Archive does not contain {DOCUMENT_MEMBER}.")
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except ValueError:
        raise ArchiveFormatError(f"{DOCUMENT_MEMBER} is not valid JSON.")
    if not isinstance(document, dict):
        raise ArchiveFormatError(f"{DOCUMENT_MEMBER} must contain a JSON object.")
    return document


def begin_import(
    archive_path: Union[str, Path], sessions: SessionStore, staging_root: Union[str, Path]
) -> StagingSession:
    """
    Extract an uploaded archive into a fresh workspace and register the import.

    The uploaded archive is deleted whether or not staging succeeds. On failure the
    workspace is removed too, so nothing is left behind.
    """
    archive_path = Path(archive_path)
    session_id = uuid.uuid4().hex
    workspace = Path(staging_root) / f"{WORKSPACE_PREFIX}{session_id}"

    try:
        workspace.mkdir(parents=True)
        _extract(archive_path, workspace)
        document = read_staged_document(workspace)
        record = sessions.create(session_id, workspace)
    except Exception:
        remove_workspace(workspace)
        raise
    finally:
        archive_path.unlink(missing_ok=True)

    document[SESSION_ANNOTATION] = session_id
    logger.info(f"Staged import session {session_id}")
    return StagingSession(
        session_id=session_id,
        workspace=str(workspace),
        document=document,
        created_at=record.created_at,
    )
