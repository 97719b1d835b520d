"""Pydantic models for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field


class ArticleOut(BaseModel):
    """One article as returned by the listing endpoint."""

    title: str
    link: str
    date: str | None = None
    source: str
    tags: list[str] = Field(default_factory=list)
    excerpt: str = ""
    image: str | None = None


class ArticlesResponse(BaseModel):
    """Response model for the article listing endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    generated_at: str | None = Field(
        alias="generatedAt", description="When the snapshot was generated"
    )
    total: int = Field(description="Number of articles in the snapshot")
    count: int = Field(description="Number of articles matching the query")
    items: list[ArticleOut] = Field(description="Matching articles, newest first")


class FailedFeedOut(BaseModel):
    url: str
    source: str
    reason: str


class RefreshResponse(BaseModel):
    """Response model for the refresh endpoint."""

    status: str = Field(description="Status of the operation")
    feeds_total: int = Field(description="Number of feeds configured")
    feeds_failed: int = Field(description="Number of feeds that failed to fetch or parse")
    items_matched: int = Field(description="Articles matching the keyword vocabulary")
    items_written: int = Field(description="Articles kept after dedup and truncation")
    generated_at: str = Field(description="Snapshot generation time")
    dry_run: bool = Field(description="Whether this was a dry run")
    failed_feeds: list[FailedFeedOut] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(description="Health status")
    version: str = Field(description="Application version")
