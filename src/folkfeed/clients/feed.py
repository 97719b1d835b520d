"""Feed retrieval and parsing for Folkfeed."""

import feedparser
import httpx

from folkfeed.config import DEFAULT_USER_AGENT
from folkfeed.errors import FetchError
from folkfeed.models import FeedSource, RawFeedItem
from folkfeed.utils.logging import get_logger

logger = get_logger(__name__)

FEED_ACCEPT = (
    "application/rss+xml, application/atom+xml, application/xml;q=0.9, "
    "text/xml;q=0.9, */*;q=0.8"
)


class FeedClient:
    """Fetches feeds over HTTP and parses them with feedparser."""

    def __init__(self, timeout: float = 20.0, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent, "Accept": FEED_ACCEPT},
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "FeedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def fetch(self, feed: FeedSource) -> list[RawFeedItem]:
        """Fetch and parse a feed.

        Args:
            feed: The feed to retrieve.

        Returns:
            One RawFeedItem per entry, in feed order.

        Raises:
            FetchError: If the feed cannot be retrieved or parsed.
        """
        logger.info("Fetching feed", url=feed.url, source=feed.source)

        body = await self._fetch_body(feed.url)
        items = self.parse(body, feed.url)

        logger.info("Feed parsed", url=feed.url, source=feed.source, entries=len(items))
        return items

    @staticmethod
    def parse(body: bytes, url: str = "") -> list[RawFeedItem]:
        """Parse a feed document into raw items.

        Raises:
            FetchError: If the document is malformed and yields no entries.
        """
        parsed = feedparser.parse(body)
        if parsed.bozo and not parsed.entries:
            error = parsed.get("bozo_exception")
            logger.warning("Feed could not be parsed", url=url, error=str(error))
            raise FetchError(f"parse error: {error}" if error else "parse error")
        return [RawFeedItem.from_entry(entry) for entry in parsed.entries]

    async def _fetch_body(self, url: str) -> bytes:
        """Fetch the raw feed document.

        Raises:
            FetchError: If the HTTP request fails.
        """
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            return response.content
        except httpx.HTTPStatusError as e:
            logger.warning("HTTP error fetching feed", url=url, status=e.response.status_code)
            raise FetchError(f"HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            logger.warning("Timeout fetching feed", url=url)
            raise FetchError("timeout") from e
        except httpx.RequestError as e:
            logger.warning("Request error fetching feed", url=url, error=str(e))
            raise FetchError(f"request error: {e}") from e
