"""Content resolvers: answer "which records satisfy this route".

Every resolver swallows :class:`UpstreamError` and malformed records
(:class:`~pydantic.ValidationError`) at its boundary and reports
absence instead (``None``, ``[]`` or an empty :class:`RecordList`), so the
renderers never have to tell "backend down" apart from "content missing".
"""

import asyncio
import logging
from typing import List, NamedTuple, Optional

from pydantic import ValidationError

from blogfront.models.page import Page
from blogfront.models.post import Post
from blogfront.models.record import RecordList
from blogfront.services import filters
from blogfront.services.backend import BackendClient, UpstreamError
from blogfront.services.text import parse_tags

logger = logging.getLogger(__name__)

POSTS = "posts"
PAGES = "pages"

# Page size used when walking a whole collection
_SCAN_PAGE_SIZE = 200
_MENU_PAGE_SIZE = 200

_PRIMARY_SORT = "-published_at"
_FALLBACK_SORT = "-date"


class AdjacentPosts(NamedTuple):
    newer: Optional[Post]
    older: Optional[Post]


async def get_posts(
    backend: BackendClient,
    *,
    page: int = 1,
    per_page: int = 10,
    filter: str = filters.PUBLISHED,
    sort: Optional[str] = None,
) -> RecordList[Post]:
    """Fetch one page of posts.

    Raises :class:`UpstreamError`, or :class:`~pydantic.ValidationError` for
    records that do not fit :class:`Post`.
    """
    data = await backend.list(POSTS, page=page, per_page=per_page, filter=filter, sort=sort)
    return RecordList[Post].model_validate(data)


async def list_posts_sorted(
    backend: BackendClient,
    *,
    page: int = 1,
    per_page: int = 10,
    filter: str = filters.PUBLISHED,
) -> RecordList[Post]:
    """List posts newest first.

    Older records may lack ``published_at``, in which case the backend rejects
    the sort; the query is then retried exactly once sorted by ``date``.  A
    second failure yields an empty result.
    """
    try:
        return await get_posts(backend, page=page, per_page=per_page, filter=filter, sort=_PRIMARY_SORT)
    except (UpstreamError, ValidationError) as exc:
        logger.warning("Sorting posts by published_at failed (%s), retrying by date", exc)
    try:
        return await get_posts(backend, page=page, per_page=per_page, filter=filter, sort=_FALLBACK_SORT)
    except (UpstreamError, ValidationError) as exc:
        logger.warning("Sorting posts by date failed (%s), returning no posts", exc)
        return RecordList[Post]()


async def _first(backend: BackendClient, collection: str, filter: str, sort: Optional[str] = None) -> Optional[dict]:
    data = await backend.list(collection, page=1, per_page=1, filter=filter, sort=sort)
    items = data.get("items") or []
    return items[0] if items else None


async def get_post_by_slug(backend: BackendClient, slug: str) -> Optional[Post]:
    if not slug:
        return None
    try:
        item = await _first(backend, POSTS, filters.all_of(filters.eq("slug", slug), filters.PUBLISHED))
        return Post.model_validate(item) if item else None
    except (UpstreamError, ValidationError) as exc:
        logger.warning("Post lookup for slug %r failed: %s", slug, exc)
        return None


async def get_page_by_url(backend: BackendClient, url_path: str) -> Optional[Page]:
    try:
        item = await _first(backend, PAGES, filters.all_of(filters.eq("url", url_path), filters.PUBLISHED))
        return Page.model_validate(item) if item else None
    except (UpstreamError, ValidationError) as exc:
        logger.warning("Page lookup for %r failed: %s", url_path, exc)
        return None


async def get_pages_menu(backend: BackendClient) -> List[Page]:
    """Published pages flagged for the navigation bar, in menu order."""
    try:
        data = await backend.list(
            PAGES,
            per_page=_MENU_PAGE_SIZE,
            filter=filters.all_of(filters.PUBLISHED, filters.MENU_VISIBLE),
            sort="menuOrder",
        )
        return RecordList[Page].model_validate(data).items
    except (UpstreamError, ValidationError) as exc:
        logger.warning("Menu lookup failed: %s", exc)
        return []


async def get_adjacent_posts(backend: BackendClient, post: Optional[Post]) -> AdjacentPosts:
    """Return the published posts immediately newer and older than *post*."""
    if post is None:
        return AdjacentPosts(None, None)
    if post.published_at.strip():
        field, value = "published_at", post.published_at
    elif post.date.strip():
        field, value = "date", post.date
    else:
        return AdjacentPosts(None, None)

    async def nearest(op: str, sort: str) -> Optional[Post]:
        clause = filters.all_of(filters.PUBLISHED, filters.compare(field, op, value))
        try:
            item = await _first(backend, POSTS, clause, sort)
            return Post.model_validate(item) if item else None
        except (UpstreamError, ValidationError) as exc:
            logger.warning("Adjacent post lookup (%s %s) failed: %s", field, op, exc)
            return None

    newer, older = await asyncio.gather(nearest(">", field), nearest("<", f"-{field}"))
    return AdjacentPosts(newer, older)


async def collect_tags(backend: BackendClient) -> List[str]:
    """Sorted union of the tags of every published post."""
    tags = set()
    page = 1
    while True:
        data = await list_posts_sorted(backend, page=page, per_page=_SCAN_PAGE_SIZE)
        for post in data.items:
            tags.update(parse_tags(post.tags))
        if len(data.items) < _SCAN_PAGE_SIZE:
            break
        page += 1
    return sorted(tags)


async def list_published_posts(backend: BackendClient) -> List[Post]:
    posts: List[Post] = []
    page = 1
    while True:
        data = await list_posts_sorted(backend, page=page, per_page=_SCAN_PAGE_SIZE)
        posts.extend(data.items)
        if len(data.items) < _SCAN_PAGE_SIZE:
            break
        page += 1
    return posts


async def list_published_pages(backend: BackendClient) -> List[Page]:
    pages: List[Page] = []
    page = 1
    while True:
        items = None
        for sort in (_PRIMARY_SORT, _FALLBACK_SORT):
            try:
                data = await backend.list(
                    PAGES, page=page, per_page=_SCAN_PAGE_SIZE, filter=filters.PUBLISHED, sort=sort
                )
                items = RecordList[Page].model_validate(data).items
                break
            except (UpstreamError, ValidationError) as exc:
                logger.warning("Listing pages sorted by %s failed: %s", sort, exc)
        if items is None:
            break
        pages.extend(items)
        if len(items) < _SCAN_PAGE_SIZE:
            break
        page += 1
    return pages
