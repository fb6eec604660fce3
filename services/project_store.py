import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

from models.common_models import ProjectInfo
from services.asset_pool import check_filename
from services.errors import DocumentValidationError, ProjectNotFoundError

logger = logging.getLogger(__name__)


def project_name_of(document: Any) -> str:
    """
    Read settingsStore.projectName and turn it into a file-safe name:
    spaces become underscores, an empty name falls back to 'project'.
    """
    settings = document.get("settingsStore") if isinstance(document, dict) else None
    name = settings.get("projectName") if isinstance(settings, dict) else None
    if not isinstance(name, str):
        raise DocumentValidationError("Project document is missing settingsStore.projectName.")
    return name.replace(" ", "_") or "project"


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class ProjectStore:
    """Directory of <name>.json project documents. Saving overwrites."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        return self.root / f"{check_filename(name)}.json"

    def save(self, name: str, document: Dict[str, Any]) -> Path:
        path = self._path(name)
        try:
            text = json.dumps(document, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise DocumentValidationError(f"Project '{name}' is not serializable: {e}")
        path.write_text(text, encoding="utf-8")
        logger.info(f"Saved project '{name}'")
        return path

    def save_document(self, document: Dict[str, Any]) -> str:
        name = project_name_of(document)
        self.save(name, document)
        return name

    def load(self, name: str) -> Dict[str, Any]:
        path = self._path(name)
        if not path.is_file():
            raise ProjectNotFoundError(name)
        return json.loads(path.read_text(encoding="utf-8"))

    def list(self) -> List[ProjectInfo]:
        projects = []
        for path in sorted(self.root.glob("*.json")):
            stats = path.stat()
            created = getattr(stats, "st_birthtime", stats.st_ctime)
            projects.append(
                ProjectInfo(
                    file_path=f"./projects/{path.name}",
                    project_name=path.stem,
                    last_modified=_timestamp(stats.st_mtime),
                    created=_timestamp(created),
                )
            )
        return projects
