"""Configuration loading for Folkfeed."""

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from folkfeed.models import FeedSource
from folkfeed.sources import FEEDS, KEYWORDS

DEFAULT_OUTPUT_PATH = Path("data") / "articles.json"
DEFAULT_USER_AGENT = "Folkfeed/0.1 (+RSS aggregator)"

_FEED_LIST = TypeAdapter(list[FeedSource])


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="FOLKFEED_")

    # Aggregator settings
    output_path: Path = Field(
        default=DEFAULT_OUTPUT_PATH, description="Where the JSON snapshot is written"
    )
    feeds_file: Path | None = Field(
        default=None,
        description="Optional JSON file of [{url, source}] replacing the built-in feeds",
    )
    keywords: list[str] | None = Field(
        default=None, description="Optional override of the keyword vocabulary"
    )
    max_items: int = Field(default=120, description="Maximum articles kept in a snapshot")
    excerpt_limit: int = Field(default=280, description="Maximum excerpt length in characters")
    feed_timeout: float = Field(default=20.0, description="Per-feed timeout in seconds")
    include_images: bool = Field(default=True, description="Extract an image URL per article")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="HTTP User-Agent header")

    # Application settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log renderer: json or console")
    dry_run: bool = Field(default=False, description="Run without writing the snapshot")
    refresh_token: SecretStr | None = Field(
        default=None,
        description="Bearer token for POST /api/v1/refresh; the endpoint is disabled when unset",
    )

    @field_validator("max_items", "excerpt_limit")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate limits are at least 1."""
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("feed_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate the per-feed timeout is positive."""
        if v <= 0:
            raise ValueError("FOLKFEED_FEED_TIMEOUT must be greater than zero.")
        return v

    @field_validator("keywords")
    @classmethod
    def validate_keywords(cls, v: list[str] | None) -> list[str] | None:
        """Drop blank keywords and reject an empty vocabulary."""
        if v is None:
            return None
        cleaned = [kw.strip() for kw in v if kw and kw.strip()]
        if not cleaned:
            raise ValueError(
                "FOLKFEED_KEYWORDS must contain at least one non-blank keyword."
            )
        return cleaned

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("json", "console"):
            raise ValueError(f"FOLKFEED_LOG_FORMAT '{v}' must be 'json' or 'console'.")
        return v


@dataclass(frozen=True)
class AggregatorConfig:
    """Immutable inputs of one aggregation run."""

    feeds: tuple[FeedSource, ...]
    keywords: tuple[str, ...]
    output_path: Path = DEFAULT_OUTPUT_PATH
    max_items: int = 120
    excerpt_limit: int = 280
    feed_timeout: float = 20.0
    include_images: bool = True


def load_feeds(path: Path | str | None = None) -> tuple[FeedSource, ...]:
    """Load the feed list from a JSON file, or return the built-in feeds.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not valid JSON or does not describe feeds.
    """
    if path is None:
        return tuple(FeedSource(**feed) for feed in FEEDS)

    feeds_path = Path(path)
    try:
        data = json.loads(feeds_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in feeds file: {feeds_path}") from exc

    try:
        return tuple(_FEED_LIST.validate_python(data))
    except ValidationError as exc:
        raise ValueError(f"Feeds file is invalid: {feeds_path}\n{exc}") from exc


def build_aggregator_config(settings: Settings) -> AggregatorConfig:
    """Freeze the settings into the configuration passed to the aggregator."""
    keywords = tuple(settings.keywords) if settings.keywords else KEYWORDS
    return AggregatorConfig(
        feeds=load_feeds(settings.feeds_file),
        keywords=keywords,
        output_path=settings.output_path,
        max_items=settings.max_items,
        excerpt_limit=settings.excerpt_limit,
        feed_timeout=settings.feed_timeout,
        include_images=settings.include_images,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
