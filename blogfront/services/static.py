"""Lookup of files under the active public-assets directory."""

import posixpath
from pathlib import Path
from typing import Optional

DEFAULT_MEDIA_TYPE = "application/octet-stream"

MEDIA_TYPES = {
    ".css": "text/css",
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".woff2": "font/woff2",
    ".txt": "text/plain",
    ".ico": "image/x-icon",
    ".xml": "application/xml",
    ".json": "application/json",
}


def clean_path(path: str) -> str:
    """Collapse ``.``/``..`` segments so the result never climbs above ``/``."""
    cleaned = posixpath.normpath("/" + path.lstrip("/"))
    # normpath keeps a leading "//"
    return "/" + cleaned.lstrip("/")


def media_type_for(path: Path) -> str:
    return MEDIA_TYPES.get(path.suffix.lower(), DEFAULT_MEDIA_TYPE)


def find_static_file(root: Path, request_path: str) -> Optional[Path]:
    """Return the regular file under *root* that *request_path* names, if any."""
    cleaned = clean_path(request_path)
    if cleaned == "/":
        return None
    base = root.resolve()
    candidate = (base / cleaned.lstrip("/")).resolve()
    if not candidate.is_relative_to(base):
        return None
    return candidate if candidate.is_file() else None
