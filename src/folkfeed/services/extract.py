"""Normalization of raw feed items into article records.

Every function here is total over :class:`RawFeedItem`: missing fields,
malformed dates and unresolvable image URLs degrade to empty values
instead of raising.
"""

import html
import re
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta, timezone
from urllib.parse import urljoin, urlsplit

from dateutil.parser import isoparse
from dateutil.parser import parse as parse_date_string

from folkfeed.models import ArticleRecord, FeedSource, RawFeedItem

UNTITLED = "(Untitled)"
ELLIPSIS = "…"
DEFAULT_EXCERPT_LIMIT = 280
# Fills fields a partial date leaves out, instead of today's date.
DATE_DEFAULT = datetime(1970, 1, 1)

TAG_PATTERN = re.compile(r"<[^>]+>")
IMG_SRC_PATTERN = re.compile(r"""<img\b[^>]*?\bsrc\s*=\s*["']([^"']+)["']""", re.IGNORECASE)

# Timezone abbreviations seen in RSS pubDate values
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": UTC,
    "UTC": UTC,
    "BST": timezone(timedelta(hours=1)),
}


def strip_html(value: str | None) -> str:
    """Strip HTML tags, decode entities and collapse whitespace."""
    if not value:
        return ""
    text = TAG_PATTERN.sub(" ", str(value))
    text = html.unescape(text)
    return " ".join(text.split())


def searchable_text(item: RawFeedItem) -> str:
    """Return the lowercased plain text used for keyword matching."""
    parts = [
        item.title,
        item.description,
        item.content,
        item.summary,
        item.content_snippet,
    ]
    return strip_html(" ".join(p for p in parts if p)).lower()


def find_keywords(text: str, keywords: Sequence[str]) -> list[str]:
    """Return the keywords contained in ``text``, in vocabulary order, without duplicates."""
    if not text:
        return []
    haystack = text.lower()
    found = [kw for kw in keywords if kw and kw.lower() in haystack]
    return list(dict.fromkeys(found))


def matches_keywords(item: RawFeedItem, keywords: Sequence[str]) -> bool:
    """Check whether the item mentions at least one keyword."""
    return bool(find_keywords(searchable_text(item), keywords))


def extract_tags(item: RawFeedItem, keywords: Sequence[str]) -> list[str]:
    return find_keywords(searchable_text(item), keywords)


def build_excerpt(item: RawFeedItem, limit: int = DEFAULT_EXCERPT_LIMIT) -> str:
    """Build a plain-text excerpt of at most ``limit`` characters.

    The first non-empty field among snippet, summary, content, description
    and title is used. Truncated excerpts end with a single ellipsis.
    """
    raw = (
        item.content_snippet
        or item.summary
        or item.content
        or item.description
        or item.title
        or ""
    )
    text = strip_html(raw)
    if len(text) > limit:
        text = text[: limit - 1].rstrip() + ELLIPSIS
    return text


def parse_date(value: str | None) -> datetime | None:
    """Parse a feed date string into an aware UTC datetime, or None."""
    if not value or not value.strip():
        return None
    try:
        dt = parse_date_string(value, default=DATE_DEFAULT, tzinfos=TZINFOS)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC)
    except (ValueError, OverflowError, TypeError):
        return None


def _parse_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        dt = isoparse(value)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC)
    except (ValueError, OverflowError, TypeError):
        return None


def extract_date(item: RawFeedItem) -> str | None:
    """Return the item's publication time as ISO-8601 UTC, or None."""
    dt = _parse_iso(item.iso_date) or parse_date(item.pub_date)
    return dt.isoformat() if dt else None


def resolve_url(raw: str | None, base: str | None) -> str | None:
    """Resolve a possibly relative image URL against the origin of ``base``.

    Protocol-relative URLs take the scheme of ``base`` (https without one).
    When resolution is not possible the raw string is returned unchanged.
    """
    if not raw or not raw.strip():
        return None
    url = raw.strip()
    if url.lower().startswith(("http://", "https://", "data:")):
        return url

    try:
        parts = urlsplit(base) if base else None
        if url.startswith("//"):
            scheme = parts.scheme if parts and parts.scheme else "https"
            return f"{scheme}:{url}"
        if not parts or not parts.scheme or not parts.netloc:
            return url
        origin = f"{parts.scheme}://{parts.netloc}"
        return urljoin(origin + "/", url)
    except ValueError:
        return url


def extract_image(item: RawFeedItem) -> str | None:
    """Best-effort image URL for an item.

    Checks the enclosure, the podcast image, media content, then the first
    ``<img>`` tag in the content or description.
    """
    candidate = item.enclosure_url or item.itunes_image or item.media_content_url
    if not candidate:
        for markup in (item.content, item.description):
            match = IMG_SRC_PATTERN.search(markup or "")
            if match:
                candidate = match.group(1)
                break
    return resolve_url(candidate, item.link)


def build_record(
    item: RawFeedItem,
    feed: FeedSource,
    keywords: Sequence[str],
    excerpt_limit: int = DEFAULT_EXCERPT_LIMIT,
    include_image: bool = True,
) -> ArticleRecord | None:
    """Turn a raw item into an ArticleRecord, or None when no keyword matches."""
    tags = extract_tags(item, keywords)
    if not tags:
        return None

    return ArticleRecord(
        title=item.title or UNTITLED,
        link=item.link or item.guid or "",
        date=extract_date(item),
        source=feed.source,
        tags=tags,
        excerpt=build_excerpt(item, excerpt_limit),
        image=extract_image(item) if include_image else None,
    )
