"""In-memory article catalog with free-text filtering."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import httpx

from folkfeed.clients.snapshot import decode_snapshot
from folkfeed.errors import SnapshotLoadError
from folkfeed.models import ArticleRecord, Snapshot
from folkfeed.utils.logging import get_logger

logger = get_logger(__name__)

LOAD_ERROR_MESSAGE = "There was a problem loading the latest articles. Please try again later."
NO_MATCHES_MESSAGE = "No articles match your current filters."

NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


def haystack(record: ArticleRecord) -> str:
    """Text a query is matched against: title, source, excerpt and tags."""
    return " ".join(
        [record.title or "", record.source or "", record.excerpt or "", " ".join(record.tags)]
    ).lower()


def filter_records(items: Sequence[ArticleRecord], query: str) -> list[ArticleRecord]:
    """Return the records containing ``query`` (case-insensitive), in their original order.

    A blank query matches everything.
    """
    needle = query.strip().lower()
    if not needle:
        return list(items)
    return [record for record in items if needle in haystack(record)]


def count_label(visible: int, total: int) -> str:
    if total and visible != total:
        return f"{visible} of {total} articles"
    return f"{visible} articles"


@dataclass
class Catalog:
    """Loaded articles and the subset matching the current query."""

    items: list[ArticleRecord] = field(default_factory=list)
    filtered: list[ArticleRecord] = field(default_factory=list)
    generated_at: str | None = None


@dataclass
class CatalogView:
    """What the page shows for the current catalog state."""

    cards: list[ArticleRecord]
    count_label: str
    generated_at: str | None
    message: str | None = None
    error: bool = False


class CatalogViewer:
    """Loads the snapshot over HTTP and keeps a filterable catalog.

    Every load and filter call re-renders; the latest view is kept on
    :attr:`view` and passed to ``on_render`` when one is given.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        snapshot_url: str,
        on_render: Callable[[CatalogView], None] | None = None,
    ) -> None:
        self._client = client
        self._snapshot_url = snapshot_url
        self._on_render = on_render
        self.catalog = Catalog()
        self.error: str | None = None
        self.view: CatalogView | None = None

    async def load(self) -> bool:
        """Fetch the snapshot and populate the catalog.

        Returns:
            True when the catalog was loaded, False when the error state is shown.
        """
        try:
            snapshot = await self._fetch_snapshot()
        except SnapshotLoadError as e:
            logger.error("Failed to load snapshot", url=self._snapshot_url, reason=e.reason)
            self.error = LOAD_ERROR_MESSAGE
            self.render()
            return False

        self.error = None
        self.catalog = Catalog(
            items=list(snapshot.items),
            filtered=list(snapshot.items),
            generated_at=snapshot.generated_at,
        )
        logger.info("Snapshot loaded", url=self._snapshot_url, items=len(snapshot.items))
        self.render()
        return True

    def filter(self, query: str) -> list[ArticleRecord]:
        """Recompute the filtered list from all items and re-render."""
        self.catalog.filtered = filter_records(self.catalog.items, query)
        self.render()
        return self.catalog.filtered

    def render(self) -> CatalogView:
        """Project the current catalog state into a view."""
        if self.error:
            view = CatalogView(
                cards=[], count_label="", generated_at=None, message=self.error, error=True
            )
        else:
            cards = list(self.catalog.filtered)
            view = CatalogView(
                cards=cards,
                count_label=count_label(len(cards), len(self.catalog.items)),
                generated_at=self.catalog.generated_at,
                message=None if cards else NO_MATCHES_MESSAGE,
            )

        self.view = view
        if self._on_render is not None:
            self._on_render(view)
        return view

    async def _fetch_snapshot(self) -> Snapshot:
        """Fetch and decode the snapshot, bypassing HTTP caches.

        Raises:
            SnapshotLoadError: On network failure, a non-success status or malformed JSON.
        """
        try:
            response = await self._client.get(self._snapshot_url, headers=NO_CACHE_HEADERS)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SnapshotLoadError(f"HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise SnapshotLoadError("timeout") from e
        except httpx.RequestError as e:
            raise SnapshotLoadError(f"request error: {e}") from e
        return decode_snapshot(response.content)
