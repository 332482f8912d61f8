"""Rewriting of backend file URLs embedded in rendered HTML.

Bodies written in the admin editor reference images through the backend's
file endpoint, ``/api/files/{collection}/{recordId}/{filename}``.  Media
records carry a stable public ``path`` that should be used instead.
"""

import asyncio
import logging
import re
from typing import Dict, Iterable, Optional

from pydantic import ValidationError

from blogfront.models.media import Media
from blogfront.services import filters
from blogfront.services.backend import BackendClient, UpstreamError

logger = logging.getLogger(__name__)

MEDIA = "media"

# The media collection is addressed either by name or by its internal id
MEDIA_COLLECTIONS = frozenset({MEDIA, "pbc_2708086759"})

MEDIA_FILE_RE = re.compile(
    r"(?:https?://[^\"'\s)]+)?/api/files/([a-zA-Z0-9_-]+)/([a-zA-Z0-9_-]+)/([^\"'\s)]+)",
    re.IGNORECASE,
)

_ABSOLUTE_PREFIXES = ("http://", "https://")


async def get_media_by_id(backend: BackendClient, record_id: str) -> Optional[Media]:
    try:
        return Media.model_validate(await backend.get_one(MEDIA, record_id))
    except (UpstreamError, ValidationError) as exc:
        logger.warning("Media lookup for %s failed: %s", record_id, exc)
        return None


async def get_media_by_path(backend: BackendClient, media_path: str) -> Optional[Media]:
    try:
        data = await backend.list(MEDIA, page=1, per_page=1, filter=filters.eq("path", media_path))
        items = data.get("items") or []
        return Media.model_validate(items[0]) if items else None
    except (UpstreamError, ValidationError) as exc:
        logger.warning("Media lookup for path %r failed: %s", media_path, exc)
        return None


def _public_value(media: Optional[Media]) -> Optional[str]:
    if media is None:
        return None
    return media.path.strip() or media.caption.strip() or None


class MediaPathCache:
    """Public paths resolved for one rewrite pass.

    Each record id is looked up at most once; the cache is thrown away with
    the pass, so edits to media records show up on the next request.
    """

    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend
        self._paths: Dict[str, Optional[str]] = {}

    def __contains__(self, record_id: str) -> bool:
        return record_id in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    async def resolve(self, record_ids: Iterable[str]) -> None:
        pending = [rid for rid in dict.fromkeys(record_ids) if rid not in self._paths]
        if not pending:
            return
        results = await asyncio.gather(*(get_media_by_id(self._backend, rid) for rid in pending))
        for record_id, media in zip(pending, results):
            self._paths[record_id] = _public_value(media)

    def get(self, record_id: str) -> Optional[str]:
        return self._paths.get(record_id)


def _substitute(match: re.Match, cache: MediaPathCache) -> str:
    replacement = cache.get(match.group(2))
    if not replacement:
        return match.group(0)
    if replacement.startswith(_ABSOLUTE_PREFIXES):
        return replacement
    return replacement if replacement.startswith("/") else f"/{replacement}"


async def rewrite_media_urls(body: str, backend: BackendClient) -> str:
    """Replace media file URLs in *body* with their canonical public paths.

    Unresolvable references are left exactly as written.  Never raises for
    backend failures.
    """
    if not body:
        return body
    matches = list(MEDIA_FILE_RE.finditer(body))
    if not matches:
        return body

    cache = MediaPathCache(backend)
    await cache.resolve(m.group(2) for m in matches if m.group(1) in MEDIA_COLLECTIONS)
    if not len(cache):
        return body
    logger.debug("Resolved %d media record(s) for rewriting", len(cache))
    return MEDIA_FILE_RE.sub(
        lambda m: _substitute(m, cache) if m.group(1) in MEDIA_COLLECTIONS else m.group(0),
        body,
    )
