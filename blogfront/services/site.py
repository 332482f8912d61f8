"""Per-route page assembly: resolve content, rewrite media, render."""

import asyncio
import logging
from typing import Optional

from blogfront.config import Settings
from blogfront.services import content, filters
from blogfront.services.backend import BackendClient
from blogfront.services.media import rewrite_media_urls
from blogfront.services.renderer import HtmlRenderer
from blogfront.services.routing import Route
from blogfront.services.toc import build_toc

logger = logging.getLogger(__name__)

HOME_PAGE_SIZE = 3
ARCHIVE_PAGE_SIZE = 10


class Site:
    """Renders every HTML route of the blog.

    Missing content always produces the not-found document rather than an
    error; callers serve it with status 200.
    """

    def __init__(self, settings: Settings, backend: BackendClient, renderer: Optional[HtmlRenderer] = None) -> None:
        self.settings = settings
        self.backend = backend
        self.renderer = renderer or HtmlRenderer(settings)

    async def render(self, route: Route, theme: str = "") -> str:
        if route.kind == "home":
            return await self.home(theme)
        if route.kind == "archive":
            return await self.archive(route.tag, route.page, theme)
        if route.kind == "post":
            return await self.post(route.slug or "", theme)
        return await self.page(route.path, theme)

    async def home(self, theme: str = "") -> str:
        menu, posts = await asyncio.gather(
            content.get_pages_menu(self.backend),
            content.list_posts_sorted(self.backend, page=1, per_page=HOME_PAGE_SIZE),
        )
        return self.renderer.home(posts.items, menu, theme)

    async def archive(self, tag: Optional[str], page_number: int = 1, theme: str = "") -> str:
        clause = filters.PUBLISHED
        if tag:
            clause = filters.all_of(clause, filters.contains("tags", tag))
        menu, posts = await asyncio.gather(
            content.get_pages_menu(self.backend),
            content.list_posts_sorted(self.backend, page=page_number, per_page=ARCHIVE_PAGE_SIZE, filter=clause),
        )
        tags = await content.collect_tags(self.backend) if not tag and page_number == 1 else []
        return self.renderer.archive(tag, page_number, posts, tags, menu, theme)

    async def post(self, slug: str, theme: str = "") -> str:
        menu, post = await asyncio.gather(
            content.get_pages_menu(self.backend),
            content.get_post_by_slug(self.backend, slug),
        )
        if post is None:
            logger.info("No published post for slug %r", slug)
            return self.renderer.not_found(menu, theme)
        body, adjacent = await asyncio.gather(
            rewrite_media_urls(post.html, self.backend),
            content.get_adjacent_posts(self.backend, post),
        )
        toc = ""
        if self.settings.show_toc:
            body, toc = build_toc(body)
        return self.renderer.post(post, body, adjacent, menu, theme, toc=toc)

    async def page(self, url_path: str, theme: str = "") -> str:
        menu, page = await asyncio.gather(
            content.get_pages_menu(self.backend),
            content.get_page_by_url(self.backend, url_path),
        )
        if page is None:
            logger.info("No published page at %r", url_path)
            return self.renderer.not_found(menu, theme)
        body = await rewrite_media_urls(page.html, self.backend)
        return self.renderer.page(page, body, menu, theme)

    async def not_found(self, theme: str = "") -> str:
        menu = await content.get_pages_menu(self.backend)
        return self.renderer.not_found(menu, theme)
