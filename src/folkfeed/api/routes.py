"""API routes for Folkfeed."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse

from folkfeed import __version__
from folkfeed.api.auth import verify_refresh_token
from folkfeed.api.models import (
    ArticleOut,
    ArticlesResponse,
    FailedFeedOut,
    HealthResponse,
    RefreshResponse,
)
from folkfeed.clients.snapshot import read_snapshot
from folkfeed.config import build_aggregator_config, get_settings
from folkfeed.errors import PersistError, SnapshotLoadError
from folkfeed.services.aggregator import run_aggregation
from folkfeed.services.catalog import filter_records
from folkfeed.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["api"])
data_router = APIRouter(tags=["data"])


def _determine_status(feeds_total: int, feeds_failed: int) -> str:
    """Determine the response status based on per-feed results."""
    if feeds_total > 0 and feeds_failed == feeds_total:
        return "failed"
    if feeds_failed > 0:
        return "partial_success"
    return "success"


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@router.get("/articles", response_model=ArticlesResponse, response_model_by_alias=True)
def articles(
    q: str = Query(default="", description="Case-insensitive text to match"),
) -> ArticlesResponse:
    """List snapshot articles whose title, source, excerpt or tags contain ``q``."""
    settings = get_settings()
    try:
        snapshot = read_snapshot(settings.output_path)
    except FileNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No snapshot has been generated yet"
        ) from e
    except SnapshotLoadError as e:
        logger.error("Failed to load snapshot", path=str(settings.output_path), reason=e.reason)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Snapshot is unreadable"
        ) from e

    matches = filter_records(snapshot.items, q)
    return ArticlesResponse(
        generated_at=snapshot.generated_at,
        total=len(snapshot.items),
        count=len(matches),
        items=[ArticleOut(**record.to_dict()) for record in matches],
    )


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    dependencies=[Depends(verify_refresh_token)],
)
async def refresh(
    dry_run: bool = Query(default=False, description="Run without writing the snapshot"),
) -> RefreshResponse:
    """Fetch all feeds and rewrite the snapshot."""
    logger.info("Refresh endpoint called", dry_run=dry_run)

    settings = get_settings()
    try:
        config = build_aggregator_config(settings)
    except (OSError, ValueError) as e:
        logger.error("Could not load feed configuration", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Feed configuration is invalid",
        ) from e

    try:
        result = await run_aggregation(
            config, settings.user_agent, dry_run=dry_run or settings.dry_run
        )
    except PersistError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Snapshot could not be written: {e.reason}",
        ) from e

    return RefreshResponse(
        status=_determine_status(result.feeds_total, result.feeds_failed),
        feeds_total=result.feeds_total,
        feeds_failed=result.feeds_failed,
        items_matched=result.items_matched,
        items_written=result.items_written,
        generated_at=result.generated_at,
        dry_run=result.dry_run,
        failed_feeds=[
            FailedFeedOut(url=f.url, source=f.source, reason=f.reason)
            for f in result.failed_feeds
        ],
    )


@data_router.get("/data/articles.json")
def snapshot_file() -> FileResponse:
    """Serve the raw snapshot. Caching is disabled so clients always get the latest."""
    path = get_settings().output_path
    if not path.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No snapshot has been generated yet"
        )
    return FileResponse(
        path,
        media_type="application/json",
        headers={"Cache-Control": "no-store"},
    )
