import logging
import os
import re
import shutil
import time
import uuid
from pathlib import Path
from typing import Dict, List, Set, Tuple, Union

from services.errors import AssetExistsError, AssetNotFoundError, DocumentValidationError, StorageError

logger = logging.getLogger(__name__)

IMAGE_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif)$", re.IGNORECASE)


def check_filename(filename: str) -> str:
    """Reject anything that is not a plain, visible file name inside one directory."""
    if (
        not filename
        or filename.startswith(".")
        or "/" in filename
        or "\\" in filename
        or "\x00" in filename
    ):
        raise DocumentValidationError(f"Invalid file name: {filename!r}")
    return filename


def is_image_name(filename: str) -> bool:
    return bool(IMAGE_PATTERN.search(filename))


class AssetPool:
    """
    Directory-backed store of uniquely named asset files.

    Writes reserve the final name with an exclusive create before any content is
    moved in, so two writers can never both claim the same filename.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, filename: str) -> Path:
        return self.root / check_filename(filename)

    def list(self) -> Set[str]:
        return {
            entry.name
            for entry in self.root.iterdir()
            if entry.is_file() and not entry.name.startswith(".")
        }

    def list_images(self) -> List[str]:
        return [f"/uploads/{name}" for name in sorted(self.list()) if is_image_name(name)]

    def resolve(self, filename: str) -> Path:
        path = self._path(filename)
        if not path.is_file():
            raise AssetNotFoundError(filename)
        return path

    def unique_name(self, filename: str) -> str:
        """Same stem and extension, decorated with a fresh disambiguator."""
        stem, ext = os.path.splitext(filename)
        while True:
            candidate = f"{stem}_{int(time.time() * 1000)}{uuid.uuid4().hex[:6]}{ext}"
            if not (self.root / candidate).exists():
                return candidate

    def _reserve(self, filename: str) -> Path:
        path = self._path(filename)
        try:
            with open(path, "xb"):
                pass
        except FileExistsError:
            raise AssetExistsError(filename)
        except OSError as e:
            raise StorageError(f"Could not create asset '{filename}': {e.strerror}", filename)
        return path

    def _copy(self, source: Path, target: Path, filename: str):
        try:
            shutil.copyfile(source, target)
        except OSError as e:
            raise StorageError(f"Could not copy asset '{filename}': {e.strerror}", filename)

    def _place(self, temp: Path, dest: Path, filename: str):
        try:
            os.replace(temp, dest)
        except OSError as e:
            raise StorageError(f"Could not store asset '{filename}': {e.strerror}", filename)

    def put(self, filename: str, source_path: Union[str, Path]) -> Path:
        """
        Copy `source_path` into the pool as `filename`.

        Raises AssetExistsError if the name is taken, StorageError on I/O failure.
        """
        dest = self._reserve(filename)
        temp = self.root / f".{uuid.uuid4().hex}.part"
        try:
            self._copy(Path(source_path), temp, filename)
            self._place(temp, dest, filename)
        except StorageError:
            temp.unlink(missing_ok=True)
            dest.unlink(missing_ok=True)
            raise
        return dest

    def commit(self, items: List[Tuple[str, Path]]) -> Dict[str, str]:
        """
        Copy a batch of (filename, source) pairs into the pool as one unit.

        Every source is first copied into a private directory inside the pool;
        only then is each file moved under its reserved final name. A name taken
        in the meantime gets a fresh unique name. On any failure the files already
        placed by this batch are removed again.

        Returns {requested filename: stored filename}.
        """
        batch_dir = self.root / f".incoming-{uuid.uuid4().hex}"
        placed: List[Path] = []
        stored: Dict[str, str] = {}
        try:
            batch_dir.mkdir()
            staged = []
            for index, (filename, source) in enumerate(items):
                check_filename(filename)
                temp = batch_dir / str(index)
                self._copy(Path(source), temp, filename)
                staged.append((filename, temp))

            for filename, temp in staged:
                final = filename
                while True:
                    try:
                        dest = self._reserve(final)
                        break
                    except AssetExistsError:
                        final = self.unique_name(filename)
                        logger.warning(f"Asset name '{filename}' was taken concurrently; using '{final}'")
                placed.append(dest)
                self._place(temp, dest, final)
                stored[filename] = final
        except OSError as e:
            self._rollback(placed)
            raise StorageError(f"Could not prepare asset batch: {e.strerror}")
        except Exception:
            self._rollback(placed)
            raise
        finally:
            shutil.rmtree(batch_dir, ignore_errors=True)
        return stored

    def _rollback(self, placed: List[Path]):
        for path in placed:
            path.unlink(missing_ok=True)
        if placed:
            logger.warning(f"Rolled back {len(placed)} asset(s) from a failed batch")
