"""
Unit tests for the upload receiver.
"""

import io
from pathlib import Path

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from services.errors import UploadRejectedError
from services.file_upload_service import (
    IMAGE_MIME_PREFIX,
    ZIP_MIME_TYPES,
    is_allowed_type,
    save_uploaded_file,
)


def _upload(content: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


class TestAllowedTypes:

    def test_image_family(self):
        assert is_allowed_type("image/png", [IMAGE_MIME_PREFIX])
        assert not is_allowed_type("text/plain", [IMAGE_MIME_PREFIX])

    def test_zip_types(self):
        assert is_allowed_type("application/x-zip-compressed", ZIP_MIME_TYPES)
        assert not is_allowed_type("application/json", ZIP_MIME_TYPES)

    def test_missing_type(self):
        assert not is_allowed_type(None, ZIP_MIME_TYPES)


class TestSaveUploadedFile:

    def test_saves_under_unique_name(self, tmp_path):
        saved = save_uploaded_file(_upload(b"abc", "Logo.PNG", "image/png"), tmp_path, [IMAGE_MIME_PREFIX], 10)

        assert saved.size == 3
        assert saved.original_filename == "Logo.PNG"
        assert saved.declared_mime_type == "image/png"
        assert saved.path.endswith(".png")
        assert Path(saved.path).read_bytes() == b"abc"

    def test_too_large_leaves_nothing(self, tmp_path):
        with pytest.raises(UploadRejectedError):
            save_uploaded_file(_upload(b"x" * 11, "big.png", "image/png"), tmp_path, [IMAGE_MIME_PREFIX], 10)
        assert list(tmp_path.iterdir()) == []

    def test_wrong_type(self, tmp_path):
        with pytest.raises(UploadRejectedError):
            save_uploaded_file(_upload(b"{}", "p.json", "application/json"), tmp_path, ZIP_MIME_TYPES, 10)
        assert list(tmp_path.iterdir()) == []
