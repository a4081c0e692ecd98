import asyncio
from io import BytesIO
from pathlib import Path
from typing import Optional

import pytest
from ebooklib import epub
from PIL import Image

from epubshelf.core.errors import NotFound, RemoteUnavailable, Unauthenticated
from epubshelf.core.session import SessionContext
from epubshelf.db.init_db import init_db
from epubshelf.db.session import make_engine
from epubshelf.models import RemoteCatalogEntry, utcnow
from epubshelf.remote.base import RemoteCatalog, RemoteMirror, blob_path_for
from epubshelf.services.background import BackgroundTasks
from epubshelf.storage.local_store import LocalStore

USER = SessionContext(user_id="user-1", access_token="token-1")
ANON = SessionContext.anonymous()


def run(coro):
    return asyncio.run(coro)


class FakeBackend(RemoteMirror, RemoteCatalog):
    """In-memory stand-in for the hosted storage bucket and user_books table."""

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.rows: dict[tuple[str, str], RemoteCatalogEntry] = {}
        self.fail = False
        self.upload_calls = 0

    def _check(self, ctx: SessionContext) -> str:
        if not ctx.is_authenticated:
            raise Unauthenticated("no session")
        if self.fail:
            raise RemoteUnavailable("backend down")
        return ctx.user_id

    def add_row(self, user_id: str, book_hash: str, title: str, cfi: Optional[str] = None, percentage: int = 0):
        self.rows[(user_id, book_hash)] = RemoteCatalogEntry(
            user_id=user_id, book_hash=book_hash, title=title,
            last_read_cfi=cfi, percentage=percentage, updated_at=utcnow(),
        )

    async def upload(self, ctx, book_id, data):
        user_id = self._check(ctx)
        self.upload_calls += 1
        path = blob_path_for(user_id, book_id)
        self.blobs[path] = data
        return path

    async def download(self, ctx, book_id):
        user_id = self._check(ctx)
        path = blob_path_for(user_id, book_id)
        if path not in self.blobs:
            raise NotFound(path)
        return self.blobs[path]

    async def fetch_all(self, ctx):
        user_id = self._check(ctx)
        return [e for (uid, _), e in self.rows.items() if uid == user_id]

    async def fetch(self, ctx, book_hash):
        user_id = self._check(ctx)
        if (user_id, book_hash) not in self.rows:
            raise NotFound(book_hash)
        return self.rows[(user_id, book_hash)]

    async def upsert(self, ctx, book_hash, title, last_read_cfi, percentage):
        self.add_row(self._check(ctx), book_hash, title, last_read_cfi, percentage)


def jpeg_bytes(size=(1200, 1800), color=(120, 30, 30)) -> bytes:
    out = BytesIO()
    Image.new("RGB", size, color).save(out, "JPEG")
    return out.getvalue()


def make_epub(path: Path, title: str = "Moby Dick", author: str = "Herman Melville",
              description: str = "", cover: bool = False, marker: str = "") -> Path:
    book = epub.EpubBook()
    book.set_identifier(f"urn:test:{title}:{author}:{marker}")
    book.set_title(title)
    book.set_language("en")
    if author:
        book.add_author(author)
    if description:
        book.add_metadata("DC", "description", description)
    if cover:
        book.set_cover("cover.jpg", jpeg_bytes())

    c1 = epub.EpubHtml(title="Loomings", file_name="text/chap_01.xhtml", lang="en")
    c1.content = f"<h1>Loomings</h1><p>Call me Ishmael. {marker}</p>"
    c2 = epub.EpubHtml(title="The Carpet-Bag", file_name="text/chap_02.xhtml", lang="en")
    c2.content = "<h1>The Carpet-Bag</h1><p>I stuffed a shirt or two.</p>"
    book.add_item(c1)
    book.add_item(c2)

    book.toc = (
        epub.Link("text/chap_01.xhtml", "Loomings", "chap_01"),
        epub.Link("text/chap_02.xhtml", "The Carpet-Bag", "chap_02"),
    )
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", c1, c2]

    epub.write_epub(str(path), book)
    return path


@pytest.fixture
def db(tmp_path):
    engine = make_engine(tmp_path / "test.db")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(db, tmp_path):
    return LocalStore(db, tmp_path / "books")


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def tasks():
    return BackgroundTasks()


@pytest.fixture
def moby(tmp_path):
    return make_epub(tmp_path / "A.epub", cover=True, description="A whale of a tale")
