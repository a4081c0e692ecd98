from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from epubshelf.core.epub import parse_epub
from epubshelf.core.errors import MetadataExtractionFailed
from epubshelf.core.logging import get_logger
from epubshelf.core.session import SessionContext
from epubshelf.core.toc import TocItem, resolve_chapter_title
from epubshelf.models import ReadingProgress
from epubshelf.remote.base import RemoteCatalog
from epubshelf.services.background import BackgroundTasks
from epubshelf.services.import_service import Parser
from epubshelf.services.progress_service import load_progress, percentage_from_fraction, save_progress
from epubshelf.storage.local_store import LocalStore

log = get_logger(__name__)

# cfi -> fraction of the book, or None while the renderer has no locations yet
PercentageFn = Callable[[str], Optional[float]]


@dataclass(frozen=True)
class Location:
    cfi: str
    href: str = ""


class ReadingSession:
    """State of one open book as the renderer moves through it."""

    def __init__(
        self,
        ctx: SessionContext,
        store: LocalStore,
        catalog: Optional[RemoteCatalog],
        book_id: str,
        parser: Parser = parse_epub,
    ):
        self.ctx = ctx
        self.store = store
        self.catalog = catalog
        self.book_id = book_id
        # progress saves for this book only
        self.tasks = BackgroundTasks()
        self.parser = parser

        self.data: bytes | None = None
        self.title = ""
        self.toc: list[TocItem] = []
        self.remote_progress: ReadingProgress | None = None
        self.current: Location | None = None
        self.percentage: int | None = None
        self.chapter_title: str | None = None

    @property
    def resume_locator(self) -> str | None:
        return self.remote_progress.last_read_cfi if self.remote_progress else None

    async def open(self) -> "ReadingSession":
        stored = await self.store.get(self.book_id)
        self.data = stored.data
        self.title = stored.record.title
        try:
            parsed = self.parser(stored.data)
            self.title = parsed.title or self.title
            self.toc = parsed.toc
        except MetadataExtractionFailed as e:
            log.warning("could not read navigation for %s: %s", self.book_id, e)

        self.remote_progress = await load_progress(self.ctx, self.catalog, self.book_id)
        if self.remote_progress:
            self.percentage = self.remote_progress.percentage
        return self

    def relocated(self, location: Location, percentage_of: PercentageFn | None = None):
        self.current = location

        chapter = resolve_chapter_title(self.toc, location.href)
        if chapter:
            self.chapter_title = chapter

        pct = percentage_from_fraction(percentage_of(location.cfi) if percentage_of else None)
        if pct is None:
            return
        self.percentage = pct
        self.tasks.spawn(
            save_progress(self.ctx, self.catalog, self.book_id, self.title, location.cfi, pct),
            name=f"progress-{self.book_id[:12]}",
        )

    @property
    def display_title(self) -> str:
        return self.chapter_title or self.title

    async def close(self):
        await self.tasks.drain()
