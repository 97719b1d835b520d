"""Feed aggregation workflow for Folkfeed."""

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from folkfeed.clients.feed import FeedClient
from folkfeed.clients.snapshot import SnapshotWriter
from folkfeed.config import DEFAULT_USER_AGENT, AggregatorConfig
from folkfeed.errors import FetchError
from folkfeed.models import ArticleRecord, FailedFeed, FeedSource, Snapshot
from folkfeed.services.extract import build_record, parse_date
from folkfeed.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AggregationResult:
    """Result of one aggregation run."""

    feeds_total: int
    feeds_failed: int
    items_matched: int
    items_written: int
    generated_at: str
    dry_run: bool
    output_path: str | None = None
    failed_feeds: list[FailedFeed] = field(default_factory=list)


def dedupe_by_link(records: Iterable[ArticleRecord]) -> list[ArticleRecord]:
    """Keep the first record seen for each link, dropping records without one."""
    by_link: dict[str, ArticleRecord] = {}
    for record in records:
        if not record.link:
            continue
        by_link.setdefault(record.link, record)
    return list(by_link.values())


def _timestamp(record: ArticleRecord) -> float:
    # Undated records sort as the epoch
    dt = parse_date(record.date)
    return dt.timestamp() if dt else 0.0


def sort_by_date(records: Iterable[ArticleRecord]) -> list[ArticleRecord]:
    """Sort newest first. The sort is stable, so ties keep their merge order."""
    return sorted(records, key=_timestamp, reverse=True)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Aggregator:
    """Fetches every configured feed and writes the article snapshot."""

    def __init__(
        self,
        config: AggregatorConfig,
        feed_client: FeedClient,
        snapshot_writer: SnapshotWriter | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._client = feed_client
        self._writer = snapshot_writer or SnapshotWriter(
            config.output_path, include_images=config.include_images
        )
        self._clock = clock

    async def run(self, dry_run: bool = False) -> AggregationResult:
        """Run the complete aggregation.

        Args:
            dry_run: If True, build the snapshot but do not write it.

        Returns:
            AggregationResult with statistics about the run.

        Raises:
            PersistError: If the snapshot cannot be written.
        """
        feeds = self._config.feeds
        logger.info(
            "Starting aggregation",
            feeds=len(feeds),
            keywords=len(self._config.keywords),
            dry_run=dry_run,
        )

        matched: list[ArticleRecord] = []
        failed_feeds: list[FailedFeed] = []

        results = await asyncio.gather(
            *[self._process_feed(feed) for feed in feeds],
            return_exceptions=True,
        )

        # gather keeps configuration order, so "first seen" is deterministic
        for feed, result in zip(feeds, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Feed processing failed", url=feed.url, source=feed.source, error=str(result)
                )
                failed_feeds.append(FailedFeed(url=feed.url, source=feed.source, reason=str(result)))
            elif isinstance(result, FailedFeed):
                failed_feeds.append(result)
            else:
                matched.extend(result)

        items = sort_by_date(dedupe_by_link(matched))[: self._config.max_items]
        snapshot = Snapshot(generated_at=self._clock().isoformat(), items=items)

        logger.info(
            "Aggregation complete",
            matched=len(matched),
            kept=len(items),
            failed=len(failed_feeds),
        )

        output_path = None
        if dry_run:
            logger.info("Dry run - snapshot not written", path=str(self._writer.path))
        else:
            output_path = str(self._writer.write(snapshot))

        return AggregationResult(
            feeds_total=len(feeds),
            feeds_failed=len(failed_feeds),
            items_matched=len(matched),
            items_written=len(items),
            generated_at=snapshot.generated_at or "",
            dry_run=dry_run,
            output_path=output_path,
            failed_feeds=failed_feeds,
        )

    async def fetch_and_filter(self, feed: FeedSource) -> list[ArticleRecord]:
        """Fetch one feed and return the records that match the keyword vocabulary.

        Raises:
            FetchError: If the feed cannot be retrieved or parsed.
        """
        raw_items = await self._client.fetch(feed)
        records = []
        for item in raw_items:
            record = build_record(
                item,
                feed,
                self._config.keywords,
                excerpt_limit=self._config.excerpt_limit,
                include_image=self._config.include_images,
            )
            if record is not None:
                records.append(record)

        logger.info(
            "Feed filtered",
            url=feed.url,
            source=feed.source,
            entries=len(raw_items),
            matched=len(records),
        )
        return records

    async def _process_feed(self, feed: FeedSource) -> list[ArticleRecord] | FailedFeed:
        """Fetch and filter one feed within the per-feed timeout."""
        try:
            return await asyncio.wait_for(
                self.fetch_and_filter(feed), timeout=self._config.feed_timeout
            )
        except TimeoutError:
            logger.warning("Feed timed out", url=feed.url, source=feed.source)
            return FailedFeed(url=feed.url, source=feed.source, reason="timeout")
        except FetchError as e:
            logger.warning("Failed to fetch feed", url=feed.url, source=feed.source, reason=e.reason)
            return FailedFeed(url=feed.url, source=feed.source, reason=e.reason)


async def run_aggregation(
    config: AggregatorConfig,
    user_agent: str = DEFAULT_USER_AGENT,
    dry_run: bool = False,
) -> AggregationResult:
    """Run the aggregator once with a fresh feed client."""
    async with FeedClient(timeout=config.feed_timeout, user_agent=user_agent) as client:
        aggregator = Aggregator(config, client)
        return await aggregator.run(dry_run=dry_run)
