"""Table of contents for post bodies, built from their ``h2``/``h3`` headings."""

from typing import Dict, List, NamedTuple, Tuple

from bs4 import BeautifulSoup

from blogfront.services.text import escape_html, slugify


class TocEntry(NamedTuple):
    level: int
    text: str
    anchor: str


def _unique_anchor(text: str, used: Dict[str, int]) -> str:
    base = slugify(text) or "section"
    used[base] = used.get(base, 0) + 1
    return base if used[base] == 1 else f"{base}-{used[base]}"


def _render_entries(entries: List[TocEntry]) -> str:
    parts = ["<ol>"]
    item_open = False
    sub_open = False
    for entry in entries:
        link = f'<a href="#{escape_html(entry.anchor)}">{escape_html(entry.text)}</a>'
        if entry.level == 3:
            if not item_open:
                parts.append("<li>")
                item_open = True
            if not sub_open:
                parts.append("<ul>")
                sub_open = True
            parts.append(f"<li>{link}</li>")
            continue
        if sub_open:
            parts.append("</ul>")
            sub_open = False
        if item_open:
            parts.append("</li>")
        parts.append(f"<li>{link}")
        item_open = True
    if sub_open:
        parts.append("</ul>")
    if item_open:
        parts.append("</li>")
    parts.append("</ol>")
    return "".join(parts)


def build_toc(body: str) -> Tuple[str, str]:
    """Return *body* with heading anchors added, and the TOC list HTML.

    Headings that already carry an ``id`` keep it.  A body without headings
    is returned untouched together with an empty TOC.
    """
    if not body or "<h" not in body.lower():
        return body, ""
    soup = BeautifulSoup(body, "lxml")
    container = soup.body
    if container is None:
        return body, ""
    headings = container.find_all(["h2", "h3"])
    if not headings:
        return body, ""

    used: Dict[str, int] = {}
    entries: List[TocEntry] = []
    for heading in headings:
        text = heading.get_text(" ", strip=True)
        anchor = heading.get("id")
        if not anchor:
            anchor = _unique_anchor(text, used)
            heading["id"] = anchor
        entries.append(TocEntry(int(heading.name[1]), text, str(anchor)))

    return container.decode_contents(), _render_entries(entries)
