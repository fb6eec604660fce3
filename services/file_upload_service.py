import os
import time
import uuid
from pathlib import Path
from typing import Iterable, Union
from fastapi import UploadFile

from models.common_models import UploadedFile
from services.errors import UploadRejectedError

IMAGE_MIME_PREFIX = "image/"
ZIP_MIME_TYPES = ("application/zip", "application/x-zip-compressed")

_CHUNK_SIZE = 1024 * 1024


def is_allowed_type(content_type: str, allowed_types: Iterable[str]) -> bool:
    """Entries ending in '/' match a whole family, e.g. 'image/'."""
    content_type = (content_type or "").lower()
    for allowed in allowed_types:
        if allowed.endswith("/") and content_type.startswith(allowed):
            return True
        if content_type == allowed:
            return True
    return False


def save_uploaded_file(
    file: UploadFile,
    dest_dir: Union[str, Path],
    allowed_types: Iterable[str],
    max_bytes: int,
) -> UploadedFile:
    """
    Save an incoming upload under a fresh unique name ("<ms>-<random><ext>").
    Rejects disallowed MIME types and anything larger than `max_bytes`;
    a partially written file is removed before the error is raised.
    """
    if not is_allowed_type(file.content_type, allowed_types):
        raise UploadRejectedError(f"File type '{file.content_type}' is not allowed.")

    ext = os.path.splitext(file.filename or "")[1].lower()
    unique_name = f"{int(time.time() * 1000)}-{uuid.uuid4().int % 10**9}{ext}"
    file_path = Path(dest_dir) / unique_name

    size = 0
    try:
        with open(file_path, "xb") as f:
            while True:
                chunk = file.file.read(_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise UploadRejectedError(
                        f"File exceeds the {max_bytes // (1024 * 1024)} MB limit."
                    )
                f.write(chunk)
    except Exception:
        file_path.unlink(missing_ok=True)
        raise

    return UploadedFile(
        path=str(file_path),
        original_filename=file.filename,
        declared_mime_type=file.content_type,
        size=size,
    )
