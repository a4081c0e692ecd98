"""On-device book store.

Two namespaces keyed by the same book id: raw EPUB bytes as files under
``blob_dir`` and :class:`BookRecord` rows in SQLite. Each namespace is
consistent on its own; a ``put`` writes the blob first, then the record, so a
reader may briefly see a blob without a record but never a torn blob.
"""
from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import select

from epubshelf.core.errors import NotFound
from epubshelf.core.logging import get_logger
from epubshelf.db.session import get_session
from epubshelf.models import BookRecord, StoredBook

log = get_logger(__name__)

BLOB_SUFFIX = ".epub"


class LocalStore:
    def __init__(self, engine: Engine, blob_dir: Path):
        self.engine = engine
        self.blob_dir = Path(blob_dir)
        self.blob_dir.mkdir(parents=True, exist_ok=True)

    def blob_path(self, book_id: str) -> Path:
        return self.blob_dir / f"{book_id}{BLOB_SUFFIX}"

    def _write_blob(self, book_id: str, data: bytes):
        fd, tmp = tempfile.mkstemp(dir=self.blob_dir, prefix=f".{book_id[:16]}-", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp, self.blob_path(book_id))
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    async def put(self, book_id: str, data: bytes, record: BookRecord) -> BookRecord:
        if record.id != book_id:
            raise ValueError(f"record id {record.id!r} does not match key {book_id!r}")

        await asyncio.to_thread(self._write_blob, book_id, data)

        with get_session(self.engine) as session:
            stored = session.merge(record)
            session.commit()
            session.refresh(stored)
            session.expunge(stored)
        log.debug("stored %s (%d bytes)", book_id, len(data))
        return stored

    async def get_record(self, book_id: str) -> Optional[BookRecord]:
        with get_session(self.engine) as session:
            return session.get(BookRecord, book_id)

    async def get_blob(self, book_id: str) -> Optional[bytes]:
        p = self.blob_path(book_id)
        if not p.exists():
            return None
        return await asyncio.to_thread(p.read_bytes)

    async def has_blob(self, book_id: str) -> bool:
        return self.blob_path(book_id).exists()

    async def get(self, book_id: str) -> StoredBook:
        record = await self.get_record(book_id)
        if record is None:
            raise NotFound(f"Book {book_id} not in local store")
        data = await self.get_blob(book_id)
        if data is None:
            raise NotFound(f"Book {book_id} has no local content")
        return StoredBook(record=record, data=data)

    async def list(self) -> list[BookRecord]:
        with get_session(self.engine) as session:
            return list(session.exec(select(BookRecord)).all())

    async def keys(self) -> set[str]:
        with get_session(self.engine) as session:
            return set(session.exec(select(BookRecord.id)).all())

    async def delete(self, book_id: str) -> bool:
        removed = False
        p = self.blob_path(book_id)
        if p.exists():
            p.unlink()
            removed = True

        with get_session(self.engine) as session:
            record = session.get(BookRecord, book_id)
            if record:
                session.delete(record)
                session.commit()
                removed = True
        return removed
