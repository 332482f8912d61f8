"""Text helpers shared by the renderer and the feeds: stripping, excerpts, dates."""

import math
import re
import unicodedata
from datetime import datetime, timezone
from html import escape
from typing import List, Optional

EXCERPT_LENGTH = 160
READING_CHARS_PER_MINUTE = 700

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def escape_html(value: str) -> str:
    return escape(value or "", quote=True)


def strip_html(value: str) -> str:
    """Replace every tag with a space and collapse whitespace."""
    if not value:
        return ""
    text = _TAG_RE.sub(" ", value)
    return _WHITESPACE_RE.sub(" ", text).strip()


def utf16_length(text: str) -> int:
    """Length in UTF-16 code units, the unit browsers count string length in."""
    return len(text.encode("utf-16-le")) // 2


def utf16_prefix(text: str, length: int) -> str:
    """First *length* UTF-16 code units of *text*.

    A surrogate pair cut in half is dropped rather than emitted as a lone
    surrogate, which could not be encoded in the response.
    """
    return text.encode("utf-16-le")[: length * 2].decode("utf-16-le", errors="ignore")


def build_excerpt(value: str, length: int = EXCERPT_LENGTH) -> str:
    """Return the stripped text, cut to *length* UTF-16 units plus ``...`` when longer."""
    text = strip_html(value)
    if utf16_length(text) <= length:
        return text
    return f"{utf16_prefix(text, length)}..."


def reading_minutes(value: str) -> int:
    """Estimated reading time in whole minutes, never less than one."""
    return max(1, math.ceil(utf16_length(strip_html(value)) / READING_CHARS_PER_MINUTE))


def parse_tags(value: str) -> List[str]:
    """Split a comma-separated tag string, dropping blanks and duplicates."""
    tags: List[str] = []
    for part in (value or "").split(","):
        tag = part.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def slugify(text: str) -> str:
    """Lowercase ASCII slug with hyphen separators; empty when nothing survives."""
    slug = unicodedata.normalize("NFKD", text)
    slug = slug.encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", slug.lower())
    return slug.strip("-")


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse a backend timestamp (``2024-01-31 10:00:00.000Z`` or ISO 8601).

    Naive values are taken to be UTC.  Returns None when unparsable.
    """
    raw = (value or "").strip()
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: str) -> str:
    """Display form of a timestamp, ``YYYY/MM/DD``; empty when unparsable."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    return parsed.strftime("%Y/%m/%d")


def iso_date(value: str) -> str:
    """Normalise a timestamp for sitemaps and feeds.

    Date-only input is kept as ``YYYY-MM-DD``; anything else becomes RFC 3339
    in UTC.  Unparsable input yields an empty string.
    """
    raw = (value or "").strip()
    if _DATE_ONLY_RE.match(raw):
        return raw if parse_timestamp(raw) else ""
    parsed = parse_timestamp(raw)
    if parsed is None:
        return ""
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def normalize_base_url(value: str) -> str:
    return (value or "").strip().rstrip("/")
