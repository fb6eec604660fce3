"""
Second phase of a project import: fold a staged workspace into the live asset
pool (confirm) or throw it away (reject).

Staged assets whose names already exist in the pool are stored under fresh
names, and the document's references are rewritten to match.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

from models.session_models import SESSION_ANNOTATION
from services.asset_pool import AssetPool, is_image_name
from services.errors import CommitFailedError
from services.reference_scanner import rewrite_asset_references
from services.session_service import (
    COMMITTED,
    COMMITTING,
    DISCARDED,
    FAILED,
    SessionStore,
    remove_workspace,
)
from services.stager import DOCUMENT_MEMBER, read_staged_document

logger = logging.getLogger(__name__)

UPLOADS_DIR = "uploads"


def staged_assets(workspace: Path) -> List[Tuple[str, Path]]:
    """
    Files under uploads/ when the archive has that directory; otherwise image
    files at the workspace root (older archives stored them there).
    """
    uploads = workspace / UPLOADS_DIR
    if uploads.is_dir():
        candidates = [p for p in uploads.iterdir() if p.is_file()]
    else:
        candidates = [
            p for p in workspace.iterdir()
            if p.is_file() and p.name != DOCUMENT_MEMBER and is_image_name(p.name)
        ]
    return sorted((p.name, p) for p in candidates if not p.name.startswith("."))


def _failed_filename(error: Exception):
    filename = getattr(error, "filename", None)
    return Path(filename).name if filename else None


def plan_renames(filenames: List[str], pool: AssetPool) -> Dict[str, str]:
    existing = pool.list()
    renames = {}
    for filename in filenames:
        if filename in existing:
            renames[filename] = pool.unique_name(filename)
    return renames


def confirm_import(session_id: str, pool: AssetPool, sessions: SessionStore) -> Dict[str, Any]:
    """
    Commit a staged import and return the finalized project document.

    Persisting the document is left to the caller. Whatever happens, the
    session's workspace is gone when this returns or raises.
    """
    record = sessions.claim(session_id, COMMITTING)
    workspace = Path(record.workspace_path)
    step = "reading staged document"
    try:
        document = read_staged_document(workspace)

        step = "collecting staged assets"
        assets = staged_assets(workspace)
        planned = plan_renames([name for name, _ in assets], pool)

        step = "copying assets"
        targets = {name: planned.get(name, name) for name, _ in assets}
        stored = pool.commit([(targets[name], source) for name, source in assets])
        # the pool may have picked yet another name if a planned one was taken meanwhile
        renames = {
            name: stored[target] for name, target in targets.items() if stored[target] != name
        }

        if renames:
            for old, new in renames.items():
                logger.warning(f"Imported asset '{old}' already exists; stored as '{new}'")
            document = rewrite_asset_references(document, renames)
    except Exception as e:
        sessions.mark(session_id, FAILED)
        remove_workspace(workspace)
        logger.error(f"Import session {session_id} failed while {step}: {e}")
        raise CommitFailedError(session_id, step, _failed_filename(e)) from e

    document.pop(SESSION_ANNOTATION, None)
    remove_workspace(workspace)
    sessions.mark(session_id, COMMITTED)
    logger.info(f"Committed import session {session_id} ({len(assets)} asset(s), {len(renames)} renamed)")
    return document


def reject_import(session_id: str, sessions: SessionStore):
    record = sessions.claim(session_id, DISCARDED)
    remove_workspace(record.workspace_path)
    logger.info(f"Discarded import session {session_id}")
