"""Shared data models for Folkfeed."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from folkfeed.errors import SnapshotLoadError


class FeedSource(BaseModel):
    """A configured feed and the label shown for its articles."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="RSS or Atom feed URL")
    source: str = Field(description="Display label for articles from this feed")


@dataclass(frozen=True)
class RawFeedItem:
    """One feed entry as delivered by the parser. Every field may be missing."""

    title: str | None = None
    link: str | None = None
    guid: str | None = None
    pub_date: str | None = None
    iso_date: str | None = None
    content: str | None = None
    description: str | None = None
    summary: str | None = None
    content_snippet: str | None = None
    enclosure_url: str | None = None
    itunes_image: str | None = None
    media_content_url: str | None = None

    @classmethod
    def from_entry(cls, entry: Any) -> "RawFeedItem":
        """Create a RawFeedItem from a feedparser entry."""
        content = None
        for block in entry.get("content") or []:
            if block.get("value"):
                content = block["value"]
                break

        enclosure_url = None
        for enclosure in entry.get("enclosures") or []:
            mime_type = enclosure.get("type") or ""
            if enclosure.get("href") and (not mime_type or mime_type.startswith("image/")):
                enclosure_url = enclosure["href"]
                break

        media_url = None
        for media in (entry.get("media_content") or []) + (entry.get("media_thumbnail") or []):
            if media.get("url"):
                media_url = media["url"]
                break

        image = entry.get("image")
        itunes_image = image.get("href") if isinstance(image, dict) else None

        return cls(
            title=entry.get("title"),
            link=entry.get("link"),
            guid=entry.get("id"),
            pub_date=entry.get("published") or entry.get("updated"),
            iso_date=_struct_time_to_iso(
                entry.get("published_parsed") or entry.get("updated_parsed")
            ),
            content=content,
            description=entry.get("description"),
            summary=entry.get("summary"),
            enclosure_url=enclosure_url,
            itunes_image=itunes_image,
            media_content_url=media_url,
        )


def _struct_time_to_iso(value: Any) -> str | None:
    # feedparser normalises parsed dates to UTC struct_time tuples
    if not value:
        return None
    try:
        return datetime(*value[:6], tzinfo=UTC).isoformat()
    except (TypeError, ValueError):
        return None


@dataclass
class ArticleRecord:
    """A normalized feed entry that passed the keyword filter."""

    title: str
    link: str
    date: str | None
    source: str
    tags: list[str] = field(default_factory=list)
    excerpt: str = ""
    image: str | None = None

    def to_dict(self, include_image: bool = True) -> dict[str, Any]:
        """Serialize using the snapshot field names and order."""
        data: dict[str, Any] = {
            "title": self.title,
            "link": self.link,
            "date": self.date,
            "source": self.source,
            "tags": list(self.tags),
            "excerpt": self.excerpt,
        }
        if include_image:
            data["image"] = self.image
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ArticleRecord":
        """Create an ArticleRecord from a snapshot entry, tolerating missing fields."""
        tags = data.get("tags")
        return cls(
            title=str(data.get("title") or ""),
            link=str(data.get("link") or ""),
            date=data.get("date") or None,
            source=str(data.get("source") or ""),
            tags=[str(t) for t in tags] if isinstance(tags, list) else [],
            excerpt=str(data.get("excerpt") or ""),
            image=data.get("image") or None,
        )


@dataclass
class Snapshot:
    """The persisted article set plus its generation time."""

    generated_at: str | None
    items: list[ArticleRecord]

    def to_dict(self, include_images: bool = True) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "items": [item.to_dict(include_image=include_images) for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Snapshot":
        """Decode a snapshot payload.

        Raises:
            SnapshotLoadError: If the payload is not a JSON object.
        """
        if not isinstance(data, dict):
            raise SnapshotLoadError("snapshot is not a JSON object")
        raw_items = data.get("items")
        items = [
            ArticleRecord.from_dict(item)
            for item in (raw_items if isinstance(raw_items, list) else [])
            if isinstance(item, dict)
        ]
        return cls(generated_at=data.get("generatedAt") or None, items=items)


@dataclass
class FailedFeed:
    """Represents a feed that failed to fetch or parse during a run."""

    url: str
    source: str
    reason: str
