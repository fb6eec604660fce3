from functools import lru_cache
from pathlib import Path

from config import PROJECTS_DIR, STAGING_DIR, UPLOAD_DIR
from services.asset_pool import AssetPool
from services.project_store import ProjectStore
from services.session_service import get_session_store


@lru_cache(maxsize=1)
def get_asset_pool() -> AssetPool:
    return AssetPool(UPLOAD_DIR)


@lru_cache(maxsize=1)
def get_project_store() -> ProjectStore:
    return ProjectStore(PROJECTS_DIR)


def get_staging_root() -> Path:
    return Path(STAGING_DIR)


__all__ = ["get_asset_pool", "get_project_store", "get_session_store", "get_staging_root"]
