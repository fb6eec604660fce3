"""
Registry of in-flight project imports.

Each staged import is a row in `import_sessions`, keyed by an opaque id and
stamped with the time it was created. A session is consumed exactly once:
`claim` moves it out of the `staged` state atomically, so a concurrent confirm
and reject on the same id cannot both succeed.
"""
import logging
import shutil
import time
from pathlib import Path
from typing import Callable, List, Optional, Union

from sqlalchemy.orm import sessionmaker

from database import SessionLocal
from models.session_db_model import ImportSessionDB
from services.errors import SessionNotFoundError

logger = logging.getLogger(__name__)

STAGED = "staged"
COMMITTING = "committing"
COMMITTED = "committed"
DISCARDED = "discarded"
FAILED = "failed"
EXPIRED = "expired"

WORKSPACE_PREFIX = "temp_"


class SessionStore:
    def __init__(self, session_factory: sessionmaker, clock: Callable[[], float] = time.time):
        self._session_factory = session_factory
        self.clock = clock

    def create(self, session_id: str, workspace: Union[str, Path]) -> ImportSessionDB:
        with self._session_factory() as db:
            record = ImportSessionDB(
                session_id=session_id,
                workspace_path=str(workspace),
                created_at=self.clock(),
                status=STAGED,
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            return record

    def get(self, session_id: str) -> Optional[ImportSessionDB]:
        with self._session_factory() as db:
            return db.get(ImportSessionDB, session_id)

    def claim(self, session_id: str, status: str) -> ImportSessionDB:
        """Move a staged session to `status`; SessionNotFoundError if it is not staged."""
        with self._session_factory() as db:
            updated = (
                db.query(ImportSessionDB)
                .filter(ImportSessionDB.session_id == session_id, ImportSessionDB.status == STAGED)
                .update({ImportSessionDB.status: status}, synchronize_session=False)
            )
            db.commit()
            if not updated:
                raise SessionNotFoundError(session_id)
            return db.get(ImportSessionDB, session_id)

    def mark(self, session_id: str, status: str):
        with self._session_factory() as db:
            db.query(ImportSessionDB).filter(ImportSessionDB.session_id == session_id).update(
                {ImportSessionDB.status: status}, synchronize_session=False
            )
            db.commit()

    def expired(self, ttl_seconds: float) -> List[ImportSessionDB]:
        cutoff = self.clock() - ttl_seconds
        with self._session_factory() as db:
            return (
                db.query(ImportSessionDB)
                .filter(ImportSessionDB.status == STAGED, ImportSessionDB.created_at < cutoff)
                .all()
            )


def remove_workspace(workspace: Union[str, Path]):
    shutil.rmtree(workspace, ignore_errors=True)


def sweep_expired_sessions(
    sessions: SessionStore, ttl_seconds: float, staging_root: Union[str, Path]
) -> List[str]:
    """
    Discard staged imports older than `ttl_seconds`, and remove stale temp_*
    workspaces that no live session owns. Returns the swept session ids.
    """
    swept = []
    for record in sessions.expired(ttl_seconds):
        try:
            sessions.claim(record.session_id, EXPIRED)
        except SessionNotFoundError:
            # consumed between listing and claiming
            continue
        remove_workspace(record.workspace_path)
        swept.append(record.session_id)
        logger.info(f"Expired import session {record.session_id}")

    cutoff = sessions.clock() - ttl_seconds
    root = Path(staging_root)
    if root.is_dir():
        for workspace in root.glob(f"{WORKSPACE_PREFIX}*"):
            if not workspace.is_dir() or workspace.stat().st_mtime >= cutoff:
                continue
            record = sessions.get(workspace.name[len(WORKSPACE_PREFIX):])
            if record is not None and record.status in (STAGED, COMMITTING):
                continue
            remove_workspace(workspace)
            logger.info(f"Removed orphaned import workspace {workspace.name}")

    return swept


_default_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    global _default_store
    if _default_store is None:
        _default_store = SessionStore(SessionLocal)
    return _default_store
