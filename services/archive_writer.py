"""
Packages a project document and the pool assets it references into a zip.

Layout:
    data.json               pretty-printed document
    uploads/<filename>      one entry per referenced asset present in the pool
"""
import json
import logging
import time
import zipfile
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Optional

from services.asset_pool import AssetPool
from services.errors import AssetNotFoundError, DocumentValidationError
from services.project_store import project_name_of
from services.reference_scanner import extract_asset_references, reference_filename

logger = logging.getLogger(__name__)

DOCUMENT_MEMBER = "data.json"
UPLOADS_PREFIX = "uploads/"

# Fixed entry timestamp so identical input yields identical archive bytes
_ENTRY_DATE_TIME = (1980, 1, 1, 0, 0, 0)
_COMPRESS_LEVEL = 9


@dataclass
class ExportSummary:
    included: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)


def archive_filename(document: Dict[str, Any], now: Optional[float] = None) -> str:
    now = time.time() if now is None else now
    return f"{project_name_of(document)}-{int(now * 1000)}.zip"


def serialize_document(document: Any) -> bytes:
    try:
        return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise DocumentValidationError(f"Project document cannot be serialized: {e}")


def _entry(name: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, date_time=_ENTRY_DATE_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    return info


def write_archive(document: Dict[str, Any], pool: AssetPool, sink: BinaryIO) -> ExportSummary:
    """
    Stream the archive for `document` into `sink`.

    Referenced assets missing from the pool are skipped with a warning; the
    archive is still valid and the dangling reference stays in data.json.
    Errors raised by the sink propagate unchanged.
    """
    payload = serialize_document(document)
    filenames = sorted({reference_filename(ref) for ref in extract_asset_references(document)})
    summary = ExportSummary()

    with zipfile.ZipFile(sink, "w", zipfile.ZIP_DEFLATED, compresslevel=_COMPRESS_LEVEL) as zf:
        zf.writestr(_entry(DOCUMENT_MEMBER), payload, compresslevel=_COMPRESS_LEVEL)

        for filename in filenames:
            try:
                path = pool.resolve(filename)
            except (AssetNotFoundError, DocumentValidationError):
                logger.warning(f"Referenced image not found, skipping: {filename}")
                summary.missing.append(filename)
                continue

            zf.writestr(
                _entry(UPLOADS_PREFIX + filename), path.read_bytes(), compresslevel=_COMPRESS_LEVEL
            )
            summary.included.append(filename)

    logger.info(
        f"Packaged project with {len(summary.included)} asset(s), "
        f"{len(summary.missing)} missing"
    )
    return summary
