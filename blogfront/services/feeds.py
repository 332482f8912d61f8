"""Atom and JSON feeds, the XML sitemap and robots.txt."""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import quote
from xml.etree import ElementTree

from blogfront.config import Settings
from blogfront.models.feed import FeedItem, JsonFeed
from blogfront.models.post import Post
from blogfront.services import content
from blogfront.services.backend import BackendClient
from blogfront.services.text import build_excerpt, iso_date, normalize_base_url

logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def _post_url(base_url: str, post: Post) -> str:
    slug = post.slug.strip()
    if not base_url or not slug:
        return ""
    return f"{base_url}/posts/{quote(slug, safe='')}/"


def _to_item(base_url: str, post: Post) -> FeedItem:
    url = _post_url(base_url, post)
    return FeedItem(
        id=url,
        url=url,
        title=post.title or post.slug.strip(),
        date_published=post.timestamp,
        summary=post.excerpt.strip() or build_excerpt(post.html),
    )


async def fetch_feed_items(settings: Settings, backend: BackendClient) -> List[FeedItem]:
    limit = settings.feed_items_limit if settings.feed_items_limit > 0 else 20
    posts = await content.list_posts_sorted(backend, page=1, per_page=limit)
    base_url = normalize_base_url(settings.site_url)
    return [_to_item(base_url, post) for post in posts.items]


def build_json_feed(settings: Settings, items: List[FeedItem]) -> JsonFeed:
    base_url = normalize_base_url(settings.site_url)
    return JsonFeed(
        title=settings.site_name,
        home_page_url=f"{base_url}/" if base_url else "",
        feed_url=f"{base_url}/feed.json" if base_url else "",
        items=items,
    )


def build_atom_feed(settings: Settings, items: List[FeedItem], updated: Optional[datetime] = None) -> str:
    base_url = normalize_base_url(settings.site_url)
    updated = updated or datetime.now(timezone.utc)

    root = ElementTree.Element("feed", xmlns=ATOM_NS)
    ElementTree.SubElement(root, "title").text = settings.site_name
    if base_url:
        ElementTree.SubElement(root, "link", href=f"{base_url}/")
        ElementTree.SubElement(root, "link", href=f"{base_url}/feed.xml", rel="self")
    ElementTree.SubElement(root, "updated").text = updated.strftime("%Y-%m-%dT%H:%M:%SZ")
    ElementTree.SubElement(root, "id").text = base_url or settings.site_name

    for item in items:
        entry = ElementTree.SubElement(root, "entry")
        ElementTree.SubElement(entry, "title").text = item.title
        if item.url:
            ElementTree.SubElement(entry, "link", href=item.url)
            ElementTree.SubElement(entry, "id").text = item.url
        if item.date_published:
            ElementTree.SubElement(entry, "updated").text = iso_date(item.date_published) or item.date_published
        ElementTree.SubElement(entry, "summary").text = item.summary

    ElementTree.indent(root)
    return _XML_DECLARATION + ElementTree.tostring(root, encoding="unicode")


async def build_sitemap(settings: Settings, backend: BackendClient, base_url: str) -> str:
    """Sitemap of the home page, archive, feeds and every published page and post."""
    root = ElementTree.Element("urlset", xmlns=SITEMAP_NS)

    def add(loc: str, lastmod: str = "") -> None:
        url = ElementTree.SubElement(root, "url")
        ElementTree.SubElement(url, "loc").text = loc
        if lastmod:
            ElementTree.SubElement(url, "lastmod").text = lastmod

    add(f"{base_url}/")
    add(f"{base_url}/archive/")
    if settings.enable_feed_xml:
        add(f"{base_url}/feed.xml")
    if settings.enable_feed_json:
        add(f"{base_url}/feed.json")

    for page in await content.list_published_pages(backend):
        page_url = page.url.strip()
        if not page_url:
            continue
        if not page_url.startswith("/"):
            page_url = f"/{page_url}"
        add(f"{base_url}{page_url}", iso_date(page.published_at.strip() or page.date))

    for post in await content.list_published_posts(backend):
        slug = post.slug.strip()
        if not slug:
            continue
        add(f"{base_url}/posts/{quote(slug, safe='')}/", iso_date(post.timestamp))

    ElementTree.indent(root)
    return _XML_DECLARATION + ElementTree.tostring(root, encoding="unicode")


def build_robots(base_url: str) -> str:
    lines = ["User-agent: *", "Allow: /"]
    if base_url:
        lines.append(f"Sitemap: {base_url}/sitemap.xml")
    return "\n".join(lines) + "\n"
