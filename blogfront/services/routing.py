"""Classification of rendered-page paths into routes."""

from typing import List, Literal, NamedTuple, Optional
from urllib.parse import unquote

RouteKind = Literal["home", "archive", "post", "page"]


class Route(NamedTuple):
    kind: RouteKind
    path: str  # decoded and normalised, always ends with "/"
    tag: Optional[str] = None
    page: int = 1
    slug: Optional[str] = None


def normalize_path(path: str) -> str:
    """Ensure *path* starts and ends with a slash."""
    if not path.startswith("/"):
        path = f"/{path}"
    return path if path.endswith("/") else f"{path}/"


def path_segments(raw_path: str) -> List[str]:
    """Split a still-encoded path on ``/`` and decode each segment.

    Splitting first keeps an encoded ``%2F`` inside its segment.
    """
    return [unquote(part) for part in raw_path.split("/") if part]


def _page_number(segment: str) -> int:
    """Positive page number from a path segment; anything else means page 1."""
    if segment.isdigit() and int(segment) > 0:
        return int(segment)
    return 1


def classify_path(raw_path: str) -> Route:
    """Map a request path, as sent on the wire, onto the page it renders.

    ``/archive/{n}/`` is a page of the full archive, ``/archive/{tag}/`` and
    ``/archive/{tag}/{n}/`` a page of a tag archive.  Anything not matched by
    the fixed prefixes is looked up as a static page URL.
    """
    normalized = normalize_path(unquote(raw_path))
    parts = path_segments(raw_path)
    if not parts:
        return Route("home", "/")

    if parts[0] == "archive":
        if len(parts) < 2:
            return Route("archive", normalized)
        if parts[1].isdigit():
            return Route("archive", normalized, page=_page_number(parts[1]))
        page = _page_number(parts[2]) if len(parts) > 2 else 1
        return Route("archive", normalized, tag=parts[1], page=page)

    if parts[0] == "posts":
        return Route("post", normalized, slug=parts[1] if len(parts) > 1 else None)

    return Route("page", normalized)
