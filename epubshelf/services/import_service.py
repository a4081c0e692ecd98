from pathlib import Path
from typing import Callable, Iterable, Optional

from epubshelf.core.epub import ParsedBook, parse_epub
from epubshelf.core.errors import MetadataExtractionFailed
from epubshelf.core.identity import resolve_book_id
from epubshelf.core.logging import get_logger
from epubshelf.core.session import SessionContext
from epubshelf.models import BookRecord, ImportResult, utcnow
from epubshelf.remote.base import RemoteMirror
from epubshelf.services.background import BackgroundTasks
from epubshelf.services.cover_service import encode_cover
from epubshelf.storage.local_store import LocalStore

log = get_logger(__name__)

Parser = Callable[[bytes], ParsedBook]
ProgressCallback = Callable[[str, int], None]


def _metadata_or_fallback(data: bytes, filename: str, parser: Parser) -> ParsedBook:
    fallback_title = Path(filename).stem or filename
    try:
        parsed = parser(data)
    except MetadataExtractionFailed as e:
        log.warning("metadata extraction failed for %s, using file name: %s", filename, e)
        return ParsedBook(title=fallback_title)
    if not parsed.title:
        parsed.title = fallback_title
    return parsed


async def _upload(mirror: RemoteMirror, ctx: SessionContext, book_id: str, data: bytes):
    path = await mirror.upload(ctx, book_id, data)
    log.info("uploaded %s to %s", book_id, path)


async def import_book(
    ctx: SessionContext,
    store: LocalStore,
    mirror: Optional[RemoteMirror],
    data: bytes,
    filename: str,
    tasks: BackgroundTasks,
    parser: Parser = parse_epub,
) -> BookRecord:
    """Store one EPUB locally and start its remote mirror upload.

    The record is returned as soon as the local write completes. The upload
    runs as a detached task; its failure shows up only in the logs.
    """
    parsed = _metadata_or_fallback(data, filename, parser)
    book_id = resolve_book_id(parsed.title, parsed.author)

    existing = await store.get_record(book_id)
    record = BookRecord(
        id=book_id,
        title=parsed.title,
        author=parsed.author,
        description=parsed.description,
        cover=encode_cover(parsed.cover_bytes),
        added_at=existing.added_at if existing else utcnow(),
    )
    record = await store.put(book_id, data, record)
    log.info("imported %s as %s", filename, book_id)

    if mirror is not None and ctx.is_authenticated:
        tasks.spawn(_upload(mirror, ctx, book_id, data), name=f"upload-{book_id[:12]}")
    else:
        log.debug("skipping upload of %s: no session or backend", book_id)
    return record


async def import_files(
    ctx: SessionContext,
    store: LocalStore,
    mirror: Optional[RemoteMirror],
    paths: Iterable[Path],
    tasks: BackgroundTasks,
    on_progress: Optional[ProgressCallback] = None,
    parser: Parser = parse_epub,
) -> list[ImportResult]:
    paths = [Path(p) for p in paths]
    total = len(paths)
    results = []

    for i, path in enumerate(paths):
        if on_progress:
            on_progress(path.name, round(i / total * 100))
        try:
            data = path.read_bytes()
            record = await import_book(ctx, store, mirror, data, path.name, tasks, parser=parser)
            results.append(ImportResult(filename=path.name, record=record))
        except Exception as e:
            log.error("failed to import %s: %s", path.name, e)
            results.append(ImportResult(filename=path.name, error=e))
        if on_progress:
            on_progress(path.name, round((i + 1) / total * 100))

    return results
