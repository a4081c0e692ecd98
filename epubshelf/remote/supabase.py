"""Hosted backend client: object storage plus the ``user_books`` REST table."""
import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

import aiohttp

from epubshelf.core.errors import NotFound, RemoteUnavailable, Unauthenticated
from epubshelf.core.logging import get_logger
from epubshelf.core.session import SessionContext
from epubshelf.models import RemoteCatalogEntry, utcnow
from .base import RemoteCatalog, RemoteMirror, blob_path_for

log = get_logger(__name__)

TABLE = "user_books"
CATALOG_FIELDS = "user_id,book_hash,title,last_read_cfi,percentage,updated_at"
EPUB_MIME = "application/epub+zip"


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _entry_from_row(row: dict) -> RemoteCatalogEntry:
    return RemoteCatalogEntry(
        user_id=str(row.get("user_id") or ""),
        book_hash=str(row["book_hash"]),
        title=row.get("title") or "",
        last_read_cfi=row.get("last_read_cfi"),
        percentage=int(row.get("percentage") or 0),
        updated_at=_parse_ts(row.get("updated_at")),
    )


def _entries_from_rows(rows: Any) -> list[RemoteCatalogEntry]:
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise RemoteUnavailable(f"unexpected catalog payload: {type(rows).__name__}")
    try:
        return [_entry_from_row(r) for r in rows]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise RemoteUnavailable(f"malformed catalog row: {e!r}") from e


class SupabaseBackend(RemoteMirror, RemoteCatalog):
    def __init__(self, base_url: str, api_key: str, bucket: str = "books", timeout: float = 20.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.bucket = bucket
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _require_user(self, ctx: SessionContext) -> str:
        if not ctx.is_authenticated:
            raise Unauthenticated("No user session")
        return ctx.user_id

    def _headers(self, ctx: SessionContext, extra: Optional[dict] = None) -> dict:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {ctx.access_token or self.api_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        ctx: SessionContext,
        *,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
        json: Any = None,
        data: Optional[bytes] = None,
        expect: str = "json",
    ) -> Any:
        session = await self._get_session()
        url = f"{self.base_url}{path}"
        log.debug("%s %s", method, path)
        try:
            async with session.request(
                method, url, params=params, headers=self._headers(ctx, headers), json=json, data=data
            ) as response:
                if response.status in (401, 403):
                    raise Unauthenticated(f"{method} {path}: HTTP {response.status}")
                if response.status == 404:
                    raise NotFound(f"{method} {path}: not found")
                if response.status >= 400:
                    body = await response.text()
                    if response.status == 400 and "not_found" in body.lower().replace(" ", "_"):
                        raise NotFound(f"{method} {path}: not found")
                    raise RemoteUnavailable(f"{method} {path}: HTTP {response.status} {body[:200]}")
                if expect == "bytes":
                    return await response.read()
                if expect == "json":
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise RemoteUnavailable(f"{method} {path}: unreadable response body") from e
                return None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteUnavailable(f"{method} {path}: {e}") from e

    # object storage

    async def upload(self, ctx: SessionContext, book_id: str, data: bytes) -> str:
        user_id = self._require_user(ctx)
        path = blob_path_for(user_id, book_id)
        await self._request(
            "POST",
            f"/storage/v1/object/{self.bucket}/{path}",
            ctx,
            headers={"x-upsert": "true", "Content-Type": EPUB_MIME},
            data=data,
            expect="none",
        )
        return path

    async def download(self, ctx: SessionContext, book_id: str) -> bytes:
        user_id = self._require_user(ctx)
        path = blob_path_for(user_id, book_id)
        return await self._request(
            "GET",
            f"/storage/v1/object/authenticated/{self.bucket}/{path}",
            ctx,
            expect="bytes",
        )

    # user_books table

    async def fetch_all(self, ctx: SessionContext) -> list[RemoteCatalogEntry]:
        user_id = self._require_user(ctx)
        rows = await self._request(
            "GET",
            f"/rest/v1/{TABLE}",
            ctx,
            params={"select": CATALOG_FIELDS, "user_id": f"eq.{user_id}"},
        )
        return _entries_from_rows(rows)

    async def fetch(self, ctx: SessionContext, book_hash: str) -> RemoteCatalogEntry:
        user_id = self._require_user(ctx)
        rows = await self._request(
            "GET",
            f"/rest/v1/{TABLE}",
            ctx,
            params={
                "select": CATALOG_FIELDS,
                "user_id": f"eq.{user_id}",
                "book_hash": f"eq.{book_hash}",
                "limit": "1",
            },
        )
        entries = _entries_from_rows(rows)
        if not entries:
            raise NotFound(f"No catalog row for {book_hash}")
        return entries[0]

    async def upsert(
        self,
        ctx: SessionContext,
        book_hash: str,
        title: str,
        last_read_cfi: Optional[str],
        percentage: int,
    ) -> None:
        user_id = self._require_user(ctx)
        row = {
            "user_id": user_id,
            "book_hash": book_hash,
            "title": title,
            "last_read_cfi": last_read_cfi,
            "percentage": percentage,
            "updated_at": utcnow().isoformat(),
        }
        await self._request(
            "POST",
            f"/rest/v1/{TABLE}",
            ctx,
            params={"on_conflict": "user_id,book_hash"},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            json=row,
            expect="none",
        )
