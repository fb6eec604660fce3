import re
from typing import Any, Dict, Set, Tuple

from services.json_tree import iter_string_leaves, map_string_leaves

UPLOADS_SEGMENT = "/uploads/"
_URL_SUFFIX = re.compile(r"[?#]")


def _split_reference(value: str) -> Tuple[str, str, str]:
    """
    Split an asset reference into (prefix, filename, suffix), where the suffix
    is any query string or fragment: '/uploads/a.png?v=2' -> ('/uploads/', 'a.png', '?v=2').
    """
    head, tail = value.rsplit(UPLOADS_SEGMENT, 1)
    match = _URL_SUFFIX.search(tail)
    cut = match.start() if match else len(tail)
    return head + UPLOADS_SEGMENT, tail[:cut], tail[cut:]


def reference_filename(value: str) -> str:
    """Filename component of an asset reference ('/uploads/a.png?v=2' -> 'a.png')."""
    return _split_reference(value)[1]


def is_asset_reference(value: str) -> bool:
    """
    A string is an asset reference when it contains /uploads/ followed by a plain
    filename, e.g. '/uploads/x.png' or 'http://host/showcomposer/uploads/x.png'.
    """
    if UPLOADS_SEGMENT not in value:
        return False
    filename = reference_filename(value)
    return bool(filename) and "/" not in filename and filename not in (".", "..")


def extract_asset_references(document: Any) -> Set[str]:
    return {leaf for leaf in iter_string_leaves(document) if is_asset_reference(leaf)}


def rewrite_asset_references(document: Any, renames: Dict[str, str]) -> Any:
    """
    Replace the filename of every asset reference found in `renames`, keeping
    any query string or fragment. Strings that merely contain an old filename
    are left alone.
    """
    if not renames:
        return document

    def _rename(value: str) -> str:
        if not is_asset_reference(value):
            return value
        prefix, filename, suffix = _split_reference(value)
        if filename not in renames:
            return value
        return prefix + renames[filename] + suffix

    return map_string_leaves(document, _rename)
