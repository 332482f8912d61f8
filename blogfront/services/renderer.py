"""HTML document assembly for every page kind the site serves.

:class:`HtmlRenderer` is pure: given resolved content, the menu pages and a
theme override it returns a complete document as a string.  All site-wide
values come from the :class:`~blogfront.config.Settings` it is built with.
"""

from typing import List, Optional, Sequence
from urllib.parse import quote

from blogfront.config import Settings
from blogfront.models.page import Page
from blogfront.models.post import Post
from blogfront.models.record import RecordList
from blogfront.services.content import AdjacentPosts
from blogfront.services.text import (
    build_excerpt,
    escape_html,
    format_date,
    parse_tags,
    reading_minutes,
)

NOT_FOUND_TITLE = "Not Found"
NOT_FOUND_MESSAGE = "The page you were looking for could not be found."

_ADS_SCRIPT_URL = "https://pagead2.googlesyndication.com/pagead/js/adsbygoogle.js"

_THEME_TOGGLE = """<li>
          <script>
            let theme = localStorage.getItem("theme") || (window.matchMedia("(prefers-color-scheme: dark)").matches
              ? "dark"
              : "light");
            document.documentElement.dataset.theme = theme;
            function changeTheme() {
              theme = theme === "dark" ? "light" : "dark";
              localStorage.setItem("theme", theme);
              document.documentElement.dataset.theme = theme;
            }
          </script>
          <button class="button" onclick="changeTheme()">
            <span class="icon">&#9680;</span>
          </button>
        </li>"""


def tag_href(tag: str) -> str:
    return f"/archive/{quote(tag, safe='')}/"


def post_href(slug: str) -> str:
    return f"/posts/{quote(slug, safe='')}/"


def archive_base(tag: Optional[str]) -> str:
    return f"/archive/{quote(tag, safe='')}" if tag else "/archive"


def pagination_href(base: str, page: int) -> str:
    return f"{base}/" if page == 1 else f"{base}/{page}/"


class HtmlRenderer:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    # -- shared chrome ---------------------------------------------------

    def stylesheet(self, theme_override: str = "") -> str:
        """Stylesheet URL: the site's own when custom assets are active, else a bundled theme."""
        if self.settings.custom_assets:
            return "/styles.css"
        theme = (theme_override or self.settings.theme).strip().lower()
        return f"/themes/{quote(theme, safe='')}/styles.css"

    def head(self, title: str, theme_override: str = "") -> str:
        s = self.settings
        site_name = escape_html(s.site_name)
        scripts = []
        if s.analytics_enabled:
            scripts.append(
                f'<script defer src="{escape_html(s.analytics_url)}" '
                f'data-website-id="{escape_html(s.analytics_site_id)}"></script>'
            )
        if s.ads_client:
            scripts.append(
                f'<script async src="{_ADS_SCRIPT_URL}?client={escape_html(s.ads_client)}" '
                'crossorigin="anonymous"></script>'
            )
        return f"""<!doctype html>
<html lang="{escape_html(s.site_language)}">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{escape_html(title)} - {site_name}</title>
    <meta name="supported-color-schemes" content="light dark" />
    <meta name="theme-color" content="hsl(220, 20%, 100%)" media="(prefers-color-scheme: light)" />
    <meta name="theme-color" content="hsl(220, 20%, 10%)" media="(prefers-color-scheme: dark)" />
    <link rel="stylesheet" href="{escape_html(self.stylesheet(theme_override))}" />
    <link rel="alternate" href="/feed.xml" type="application/atom+xml" title="{site_name}" />
    <link rel="alternate" href="/feed.json" type="application/json" title="{site_name}" />
    <link rel="icon" type="image/png" sizes="32x32" href="/favicon.png" />
    <meta name="description" content="{escape_html(s.site_description)}" />
    {"".join(scripts)}
  </head>
  <body>"""

    def nav(self, menu_pages: Sequence[Page]) -> str:
        links = "".join(
            f'\n        <li><a href="{escape_html(page.url)}">{escape_html(page.menu_label)}</a></li>'
            for page in menu_pages
        )
        return f"""<nav class="navbar">
      <a href="/" class="navbar-home">
        <strong>{escape_html(self.settings.site_name)}</strong>
      </a>
      <ul class="navbar-links">
        <li><a href="/archive/">Archive</a></li>{links}
        {_THEME_TOGGLE}
      </ul>
    </nav>"""

    def footer(self) -> str:
        footer = self.settings.footer_html
        block = f'<footer class="footer">{footer}</footer>' if footer else ""
        return f"{block}\n  </body>\n</html>"

    def document(self, title: str, menu_pages: Sequence[Page], main: str, theme_override: str = "") -> str:
        return self.head(title, theme_override) + self.nav(menu_pages) + main + self.footer()

    # -- fragments -------------------------------------------------------

    @staticmethod
    def tag_badges(tags: List[str]) -> str:
        if not tags:
            return ""
        badges = "".join(f'<a class="badge" href="{tag_href(tag)}">{escape_html(tag)}</a>' for tag in tags)
        return f'<div class="post-tags">{badges}</div>'

    @staticmethod
    def post_time(post: Post) -> str:
        if not post.timestamp:
            return ""
        return (
            f'<p><time datetime="{escape_html(post.timestamp)}">'
            f"{format_date(post.timestamp)}</time></p>"
        )

    def post_list(self, posts: Sequence[Post]) -> str:
        articles = []
        for post in posts:
            body = post.html
            excerpt = post.excerpt or build_excerpt(body)
            href = post_href(post.slug)
            articles.append(
                f"""<article class="post">
          <header class="post-header">
            <h2 class="post-title">
              <a href="{href}">{escape_html(post.title or post.slug)}</a>
            </h2>
            <div class="post-details">
              {self.post_time(post)}
              <p>{reading_minutes(body)} min</p>
              {self.tag_badges(parse_tags(post.tags))}
            </div>
          </header>
          <div class="post-excerpt body">{excerpt}</div>
          <a href="{href}" class="post-link">Read &rarr;</a>
        </article>"""
            )
        return f'<section class="postList">\n    {"".join(articles)}\n  </section>'

    @staticmethod
    def pagination(base: str, page_number: int, total_pages: int) -> str:
        """Previous/next links only; nothing when everything fits on one page."""
        if not total_pages or total_pages <= 1:
            return ""
        items = []
        if page_number > 1:
            prev = page_number - 1
            items.append(
                f'<li class="pagination-prev"><a href="{pagination_href(base, prev)}" rel="prev">'
                f"<span>Previous</span><strong>{prev}</strong></a></li>"
            )
        if page_number < total_pages:
            nxt = page_number + 1
            items.append(
                f'<li class="pagination-next"><a href="{pagination_href(base, nxt)}" rel="next">'
                f"<span>Next</span><strong>{nxt}</strong></a></li>"
            )
        return f"""<nav class="page-pagination pagination">
    <ul>
      {"".join(items)}
    </ul>
  </nav>"""

    @staticmethod
    def tags_nav(tags: Sequence[str]) -> str:
        if not tags:
            return ""
        links = "".join(
            f'<li><a href="{tag_href(tag)}" class="badge">{escape_html(tag)}</a></li>' for tag in tags
        )
        return f"""<nav class="page-navigation">
    <h2>tags:</h2>
    <ul class="page-navigation-tags">
      {links}
    </ul>
  </nav>"""

    @staticmethod
    def post_nav(adjacent: AdjacentPosts) -> str:
        newer, older = adjacent
        if not newer and not older:
            return ""
        items = []
        if older:
            items.append(
                f'<li class="pagination-prev"><a href="{post_href(older.slug)}" rel="prev">'
                f"<span>&larr; Older post</span><strong>{escape_html(older.title or 'Post')}</strong></a></li>"
            )
        if newer:
            items.append(
                f'<li class="pagination-next"><a href="{post_href(newer.slug)}" rel="next">'
                f"<span>Newer post &rarr;</span><strong>{escape_html(newer.title or 'Post')}</strong></a></li>"
            )
        return f"""<nav class="page-pagination pagination post-pagination">
    <ul>
      {"".join(items)}
    </ul>
  </nav>"""

    # -- documents -------------------------------------------------------

    def home(self, posts: Sequence[Post], menu_pages: Sequence[Page], theme_override: str = "") -> str:
        s = self.settings
        hero = ""
        if s.home_top_image:
            hero = (
                f'<img src="{escape_html(s.home_top_image)}" alt="{escape_html(s.home_top_image_alt)}" '
                'class="top-image" />'
            )
        main = f"""<main class="body-home">
      <header class="page-header">
        {hero}
        <h1 class="page-title">{escape_html(s.home_welcome)}</h1>
      </header>
      {self.post_list(posts)}
      <hr>
      <p>More posts can be found in <a href="/archive/">the archive</a>.</p>
    </main>"""
        return self.document("Home", menu_pages, main, theme_override)

    def archive(
        self,
        tag: Optional[str],
        page_number: int,
        posts: RecordList[Post],
        tags: Sequence[str],
        menu_pages: Sequence[Page],
        theme_override: str = "",
    ) -> str:
        """Archive listing; *tags* is only shown on the untagged first page."""
        title = f"tag: {tag}" if tag else "Archive"
        pagination = self.pagination(archive_base(tag), page_number, posts.total_pages or 1)
        tags_nav = self.tags_nav(tags) if not tag and page_number == 1 else ""
        main = f"""<main class="body-tag">
      <header class="page-header">
        <h1 class="page-title">{escape_html(title)}</h1>
        <p>RSS: <a href="/feed.xml">Atom</a>, <a href="/feed.json">JSON</a></p>
        <div class="search" id="search"></div>
      </header>
      {self.post_list(posts.items)}
      {pagination}
      {tags_nav}
    </main>"""
        return self.document(title, menu_pages, main, theme_override)

    def post(
        self,
        post: Post,
        body: str,
        adjacent: AdjacentPosts,
        menu_pages: Sequence[Page],
        theme_override: str = "",
        toc: str = "",
    ) -> str:
        """Single post; *body* is the already rewritten HTML."""
        category = f"<p>{escape_html(post.category)}</p>" if post.category else ""
        toc_block = f'<nav class="toc"><h2>Content</h2>{toc}</nav>' if toc else ""
        main = f"""<main class="body-post">
      <article class="post">
        <header class="post-header">
          <h1 class="post-title">{escape_html(post.title)}</h1>
          <div class="post-details">
            {self.post_time(post)}
            <p>{reading_minutes(body)} min</p>
            {category}
            {self.tag_badges(parse_tags(post.tags))}
          </div>
        </header>
        {toc_block}
        <div class="post-body body">{body}</div>
      </article>
      {self.post_nav(adjacent)}
    </main>"""
        return self.document(post.title or "Post", menu_pages, main, theme_override)

    def page(self, page: Page, body: str, menu_pages: Sequence[Page], theme_override: str = "") -> str:
        main = f"""<main class="body-tag">
      <article class="post">
        <header class="post-header">
          <h1 class="post-title">{escape_html(page.title)}</h1>
        </header>
        <div class="post-body body">{body}</div>
      </article>
    </main>"""
        return self.document(page.title or "Page", menu_pages, main, theme_override)

    def not_found(self, menu_pages: Sequence[Page], theme_override: str = "") -> str:
        main = f"""<main class="body-post">
      <article class="post">
        <header class="post-header">
          <h1 class="post-title">{NOT_FOUND_TITLE}</h1>
        </header>
        <div class="post-body body">{NOT_FOUND_MESSAGE}</div>
      </article>
    </main>"""
        return self.document(NOT_FOUND_TITLE, menu_pages, main, theme_override)
