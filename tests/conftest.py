"""
Shared test fixtures and configuration for pytest.
"""

import io
import os
import tempfile
import time
import zipfile
from pathlib import Path

# Point the app's directories and database at a scratch location before
# anything imports config.
_SCRATCH = Path(tempfile.mkdtemp(prefix="showcomposer-tests-"))
os.environ.setdefault("UPLOAD_DIR", str(_SCRATCH / "uploads"))
os.environ.setdefault("PROJECTS_DIR", str(_SCRATCH / "projects"))
os.environ.setdefault("STAGING_DIR", str(_SCRATCH / "staging"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_SCRATCH / 'app.db'}")

import pytest
from sqlalchemy.orm import sessionmaker

from database import Base, build_engine
from models.session_db_model import ImportSessionDB
from services.asset_pool import AssetPool
from services.project_store import ProjectStore
from services.session_service import SessionStore

PNG_HEADER = b"\x89PNG\r\n\x1a\n"


class FakeClock:
    """Injectable clock; starts at the real current time so file mtimes line up."""

    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(time.time())


@pytest.fixture
def session_store(tmp_path, clock):
    engine = build_engine(f"sqlite:///{tmp_path / 'sessions.db'}")
    Base.metadata.create_all(bind=engine, tables=[ImportSessionDB.__table__])
    store = SessionStore(sessionmaker(bind=engine, autoflush=False), clock=clock)
    yield store
    engine.dispose()


@pytest.fixture
def pool(tmp_path) -> AssetPool:
    return AssetPool(tmp_path / "uploads")


@pytest.fixture
def project_store(tmp_path) -> ProjectStore:
    return ProjectStore(tmp_path / "projects")


@pytest.fixture
def staging_root(tmp_path) -> Path:
    root = tmp_path / "staging"
    root.mkdir()
    return root


@pytest.fixture
def demo_document() -> dict:
    return {
        "settingsStore": {"projectName": "Demo"},
        "slides": [{"bg": "/uploads/x.png"}],
    }


@pytest.fixture
def make_zip(tmp_path):
    """Factory writing a zip with the given {member name: bytes or str} to disk."""
    counter = {"n": 0}

    def _make(members: dict, name: str = None) -> Path:
        counter["n"] += 1
        path = tmp_path / (name or f"upload-{counter['n']}.zip")
        with zipfile.ZipFile(path, "w") as zf:
            for member, content in members.items():
                zf.writestr(member, content)
        return path

    return _make


def png_bytes(payload: bytes = b"") -> bytes:
    return PNG_HEADER + payload


def read_zip(data: bytes) -> dict:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name) for name in zf.namelist()}
