import math
from typing import Optional

from epubshelf.core.errors import NotFound, ShelfError, Unauthenticated
from epubshelf.core.logging import get_logger
from epubshelf.core.session import SessionContext
from epubshelf.models import ReadingProgress
from epubshelf.remote.base import RemoteCatalog

log = get_logger(__name__)


def percentage_from_fraction(fraction: Optional[float]) -> Optional[int]:
    if fraction is None:
        return None
    return min(100, max(0, math.floor(fraction * 100)))


async def save_progress(
    ctx: SessionContext,
    catalog: Optional[RemoteCatalog],
    book_id: str,
    title: str,
    locator: str,
    percentage: int,
) -> bool:
    """Upsert the reading position for ``book_id``; the newest call wins.

    Returns False without raising when there is no session or the backend
    cannot be reached.
    """
    if catalog is None or not ctx.is_authenticated:
        return False
    percentage = min(100, max(0, int(percentage)))
    try:
        await catalog.upsert(ctx, book_id, title, locator, percentage)
    except Unauthenticated:
        log.info("progress for %s not saved: session rejected", book_id)
        return False
    except ShelfError as e:
        log.warning("progress for %s not saved: %s", book_id, e)
        return False
    return True


async def load_progress(
    ctx: SessionContext,
    catalog: Optional[RemoteCatalog],
    book_id: str,
) -> Optional[ReadingProgress]:
    """Stored position for ``book_id``, or None to start from the beginning."""
    if catalog is None or not ctx.is_authenticated:
        return None
    try:
        entry = await catalog.fetch(ctx, book_id)
    except NotFound:
        log.debug("no remote progress for %s", book_id)
        return None
    except ShelfError as e:
        log.warning("remote progress for %s unavailable: %s", book_id, e)
        return None
    if not entry.last_read_cfi:
        return None
    return ReadingProgress(
        last_read_cfi=entry.last_read_cfi,
        percentage=entry.percentage,
        updated_at=entry.updated_at,
    )
