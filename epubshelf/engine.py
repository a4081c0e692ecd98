"""Entry points for the presentation layer.

:class:`ShelfEngine` owns the local store, the optional hosted backend and
the current :class:`SessionContext`. Login and logout replace the context
wholesale; every operation reads the context current at call time.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from epubshelf.core.config import ShelfConfig
from epubshelf.core.epub import parse_epub
from epubshelf.core.logging import configure, get_logger
from epubshelf.core.session import SessionContext
from epubshelf.db.init_db import init_db
from epubshelf.db.session import make_engine
from epubshelf.models import BookRecord, ImportResult, LibraryEntry, ReadingProgress, ReaderSettings
from epubshelf.remote.base import RemoteCatalog, RemoteMirror
from epubshelf.remote.supabase import SupabaseBackend
from epubshelf.services import import_service, library_service, progress_service, settings_service
from epubshelf.services.background import BackgroundTasks
from epubshelf.services.import_service import Parser, ProgressCallback
from epubshelf.services.reading_service import ReadingSession
from epubshelf.storage.local_store import LocalStore

log = get_logger(__name__)


class ShelfEngine:
    def __init__(
        self,
        config: ShelfConfig,
        mirror: Optional[RemoteMirror] = None,
        catalog: Optional[RemoteCatalog] = None,
        session: Optional[SessionContext] = None,
        parser: Parser = parse_epub,
    ):
        configure(config.log_level)
        config.ensure_dirs()
        self.config = config
        self.db = make_engine(config.db_path)
        init_db(self.db)
        self.store = LocalStore(self.db, config.blob_dir)
        self.parser = parser
        self.tasks = BackgroundTasks()

        self._backend: Optional[SupabaseBackend] = None
        if (mirror is None or catalog is None) and config.has_backend:
            self._backend = SupabaseBackend(
                config.backend_url, config.api_key, bucket=config.bucket, timeout=config.request_timeout
            )
        self.mirror = mirror or self._backend
        self.catalog = catalog or self._backend
        self.session = session or SessionContext.anonymous()

    def login(self, session: SessionContext):
        self.session = session
        log.info("session started for user %s", session.user_id)

    def logout(self):
        self.session = SessionContext.anonymous()
        log.info("session ended")

    async def import_files(
        self, paths: Iterable[Path], on_progress: Optional[ProgressCallback] = None
    ) -> list[ImportResult]:
        return await import_service.import_files(
            self.session, self.store, self.mirror, paths, self.tasks, on_progress=on_progress, parser=self.parser
        )

    async def import_bytes(self, data: bytes, filename: str) -> BookRecord:
        return await import_service.import_book(
            self.session, self.store, self.mirror, data, filename, self.tasks, parser=self.parser
        )

    async def library(self) -> list[LibraryEntry]:
        return await library_service.reconcile(self.session, self.store, self.catalog)

    async def delete(self, book_id: str) -> bool:
        return await library_service.delete_book(self.store, book_id)

    async def download(self, book_id: str, title_hint: str = "") -> BookRecord:
        return await library_service.download_book(
            self.session, self.store, self.mirror, book_id, title_hint=title_hint, parser=self.parser
        )

    async def open_book(self, book_id: str) -> ReadingSession:
        reading = ReadingSession(self.session, self.store, self.catalog, book_id, parser=self.parser)
        return await reading.open()

    async def save_progress(self, book_id: str, title: str, locator: str, percentage: int) -> bool:
        return await progress_service.save_progress(self.session, self.catalog, book_id, title, locator, percentage)

    async def load_progress(self, book_id: str) -> Optional[ReadingProgress]:
        return await progress_service.load_progress(self.session, self.catalog, book_id)

    def settings(self) -> ReaderSettings:
        return settings_service.get_settings(self.db)

    def update_settings(self, **changes) -> ReaderSettings:
        return settings_service.update_settings(self.db, **changes)

    async def close(self):
        await self.tasks.drain()
        if self._backend is not None:
            await self._backend.close()
        self.db.dispose()
