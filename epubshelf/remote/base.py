from abc import ABC, abstractmethod
from typing import Optional

from epubshelf.core.session import SessionContext
from epubshelf.models import RemoteCatalogEntry


def blob_path_for(user_id: str, book_id: str) -> str:
    return f"{user_id}/{book_id}.epub"


class RemoteMirror(ABC):
    """Per-user remote area holding raw book bytes."""

    @abstractmethod
    async def upload(self, ctx: SessionContext, book_id: str, data: bytes) -> str:
        pass

    @abstractmethod
    async def download(self, ctx: SessionContext, book_id: str) -> bytes:
        pass


class RemoteCatalog(ABC):
    """Per-user ``user_books`` table, one row per book with the last position."""

    @abstractmethod
    async def fetch_all(self, ctx: SessionContext) -> list[RemoteCatalogEntry]:
        pass

    @abstractmethod
    async def fetch(self, ctx: SessionContext, book_hash: str) -> RemoteCatalogEntry:
        pass

    @abstractmethod
    async def upsert(
        self,
        ctx: SessionContext,
        book_hash: str,
        title: str,
        last_read_cfi: Optional[str],
        percentage: int,
    ) -> None:
        pass
