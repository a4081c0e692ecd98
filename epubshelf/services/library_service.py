from datetime import datetime
from typing import Optional

from epubshelf.core.epub import parse_epub
from epubshelf.core.errors import MetadataExtractionFailed, ShelfError
from epubshelf.core.logging import get_logger
from epubshelf.core.session import SessionContext
from epubshelf.models import BookRecord, LibraryEntry, utcnow
from epubshelf.remote.base import RemoteCatalog, RemoteMirror
from epubshelf.services.cover_service import encode_cover
from epubshelf.services.import_service import Parser
from epubshelf.storage.local_store import LocalStore

log = get_logger(__name__)


def _sort_newest_first(entries: list[LibraryEntry], default_ts: datetime) -> list[LibraryEntry]:
    # stable: entries sharing a timestamp keep their input order
    return sorted(entries, key=lambda e: e.added_at or default_ts, reverse=True)


async def get_local_library(store: LocalStore) -> list[LibraryEntry]:
    entries = [
        LibraryEntry.from_record(r, remote_only=not await store.has_blob(r.id))
        for r in await store.list()
    ]
    return _sort_newest_first(entries, utcnow())


async def reconcile(
    ctx: SessionContext,
    store: LocalStore,
    catalog: Optional[RemoteCatalog],
) -> list[LibraryEntry]:
    """Merge the local store with the user's remote catalog.

    Every id known to either side appears once. When both sides know a book
    the local metadata is shown. Remote-only books carry the catalog title, no
    author and no cover, and sort as if added at the time of this call, ahead
    of local books, in catalog order. Any remote failure yields the local view.
    """
    started = utcnow()
    if catalog is None or not ctx.is_authenticated:
        return await get_local_library(store)

    try:
        remote_entries = await catalog.fetch_all(ctx)
    except ShelfError as e:
        log.warning("remote catalog unavailable, showing local library: %s", e)
        return await get_local_library(store)

    local_ids = await store.keys()
    merged: list[LibraryEntry] = []
    seen: set[str] = set()

    for entry in remote_entries:
        book_id = entry.book_hash
        if book_id in seen:
            continue
        seen.add(book_id)

        if book_id in local_ids:
            record = await store.get_record(book_id)
            local_ids.discard(book_id)
            if record is not None:
                merged.append(LibraryEntry.from_record(record, remote_only=not await store.has_blob(book_id)))
                continue

        merged.append(LibraryEntry(
            id=book_id,
            title=entry.title,
            author="",
            cover=None,
            added_at=None,
            remote_only=True,
        ))

    for book_id in local_ids:
        record = await store.get_record(book_id)
        if record is not None:
            merged.append(LibraryEntry.from_record(record, remote_only=not await store.has_blob(book_id)))

    return _sort_newest_first(merged, started)


async def delete_book(store: LocalStore, book_id: str) -> bool:
    # local copy only; the remote row and blob stay
    removed = await store.delete(book_id)
    if removed:
        log.info("deleted %s", book_id)
    return removed


async def download_book(
    ctx: SessionContext,
    store: LocalStore,
    mirror: RemoteMirror,
    book_id: str,
    title_hint: str = "",
    parser: Parser = parse_epub,
) -> BookRecord:
    """Fetch a remote-only book and keep it locally under the same id.

    Errors (no session, missing blob, backend failure) propagate to the caller.
    """
    data = await mirror.download(ctx, book_id)

    try:
        parsed = parser(data)
        title, author, description = parsed.title or title_hint, parsed.author, parsed.description
        cover = encode_cover(parsed.cover_bytes)
    except MetadataExtractionFailed as e:
        log.warning("downloaded %s but could not read metadata: %s", book_id, e)
        title, author, description, cover = title_hint, "", "", None

    existing = await store.get_record(book_id)
    record = BookRecord(
        id=book_id,
        title=title,
        author=author,
        description=description,
        cover=cover,
        added_at=existing.added_at if existing else utcnow(),
    )
    record = await store.put(book_id, data, record)
    log.info("downloaded %s", book_id)
    return record
