"""
Unit tests for staging an uploaded project archive.
"""

import json
import struct
import zipfile
from pathlib import Path

import pytest

from conftest import png_bytes
from services.errors import ArchiveFormatError
from services.session_service import STAGED
from services.stager import begin_import


def _workspaces(staging_root: Path):
    return list(staging_root.glob("temp_*"))


class TestBeginImport:

    def test_stages_document_and_assets(self, make_zip, session_store, staging_root, demo_document):
        archive = make_zip({
            "data.json": json.dumps(demo_document),
            "uploads/x.png": png_bytes(b"x"),
        })

        session = begin_import(archive, session_store, staging_root)

        assert not archive.exists()
        workspace = Path(session.workspace)
        assert workspace.parent == staging_root
        assert workspace.name == f"temp_{session.session_id}"
        assert (workspace / "uploads" / "x.png").read_bytes() == png_bytes(b"x")

        expected = dict(demo_document, _tempImportId=session.session_id)
        assert session.document == expected

        record = session_store.get(session.session_id)
        assert record.status == STAGED
        assert record.created_at == session.created_at

    def test_session_ids_are_unique(self, make_zip, session_store, staging_root, demo_document):
        first = begin_import(make_zip({"data.json": json.dumps(demo_document)}), session_store, staging_root)
        second = begin_import(make_zip({"data.json": json.dumps(demo_document)}), session_store, staging_root)
        assert first.session_id != second.session_id
        assert len(_workspaces(staging_root)) == 2


class TestMalformedArchives:

    def _assert_no_residue(self, archive, session_store, staging_root):
        with pytest.raises(ArchiveFormatError):
            begin_import(archive, session_store, staging_root)
        assert not archive.exists()
        assert _workspaces(staging_root) == []

    def test_missing_data_json(self, make_zip, session_store, staging_root):
        archive = make_zip({"uploads/x.png": png_bytes()})
        self._assert_no_residue(archive, session_store, staging_root)

    def test_invalid_json(self, make_zip, session_store, staging_root):
        archive = make_zip({"data.json": "{not json"})
        self._assert_no_residue(archive, session_store, staging_root)

    def test_document_not_an_object(self, make_zip, session_store, staging_root):
        archive = make_zip({"data.json": "[1, 2, 3]"})
        self._assert_no_residue(archive, session_store, staging_root)

    def test_not_a_zip(self, tmp_path, session_store, staging_root):
        archive = tmp_path / "upload.zip"
        archive.write_bytes(b"definitely not a zip file")
        self._assert_no_residue(archive, session_store, staging_root)

    def test_member_escaping_workspace(self, make_zip, session_store, staging_root, tmp_path):
        archive = make_zip({"data.json": "{}", "../escaped.png": png_bytes()})
        self._assert_no_residue(archive, session_store, staging_root)
        assert not (tmp_path / "escaped.png").exists()

    def test_corrupt_deflate_stream(self, tmp_path, session_store, staging_root):
        document = {"slides": [{"id": i, "bg": f"/uploads/slide-{i}.png"} for i in range(200)]}
        archive = tmp_path / "corrupt.zip"
        with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr("data.json", json.dumps(document))

        raw = bytearray(archive.read_bytes())
        name_len, extra_len = struct.unpack("<HH", raw[26:30])
        start = 30 + name_len + extra_len
        for i in range(start + 40, start + 60):
            raw[i] ^= 0xFF
        archive.write_bytes(bytes(raw))

        self._assert_no_residue(archive, session_store, staging_root)

    def test_unsupported_compression_method(self, make_zip, session_store, staging_root):
        archive = make_zip({"data.json": "{}"})
        raw = bytearray(archive.read_bytes())
        central = raw.index(b"PK\x01\x02")
        raw[central + 10:central + 12] = struct.pack("<H", 99)
        archive.write_bytes(bytes(raw))

        self._assert_no_residue(archive, session_store, staging_root)
