"""Command-line entry point for the feed aggregator."""

import asyncio
import sys

from pydantic import ValidationError

from folkfeed import __version__
from folkfeed.config import build_aggregator_config, get_settings
from folkfeed.errors import PersistError
from folkfeed.services.aggregator import run_aggregation
from folkfeed.utils.logging import get_logger, setup_logging


def main() -> int:
    """Fetch all feeds and write the snapshot.

    Returns:
        0 on success (including per-feed failures), 1 when the run could not complete.
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging()
        get_logger(__name__).error("Invalid configuration", error=str(e))
        return 1

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger(__name__)
    logger.info("Folkfeed aggregator starting", version=__version__)

    try:
        config = build_aggregator_config(settings)
    except (OSError, ValueError) as e:
        logger.error("Could not load feed configuration", error=str(e))
        return 1

    try:
        result = asyncio.run(run_aggregation(config, settings.user_agent, settings.dry_run))
    except PersistError as e:
        logger.error("Could not persist snapshot", reason=e.reason)
        return 1
    except Exception as e:
        logger.exception("Unexpected error while fetching feeds", error=str(e))
        return 1

    logger.info(
        "Wrote articles",
        count=result.items_written,
        path=result.output_path,
        feeds_failed=result.feeds_failed,
        dry_run=result.dry_run,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
