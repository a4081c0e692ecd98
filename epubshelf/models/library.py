from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .book import BookRecord


@dataclass(frozen=True)
class StoredBook:
    record: BookRecord
    data: bytes


@dataclass(frozen=True)
class LibraryEntry:
    id: str
    title: str
    author: str = ""
    description: str = ""
    cover: Optional[str] = None
    added_at: Optional[datetime] = None
    remote_only: bool = False

    @classmethod
    def from_record(cls, record: BookRecord, remote_only: bool = False) -> "LibraryEntry":
        return cls(
            id=record.id,
            title=record.title,
            author=record.author,
            description=record.description,
            cover=record.cover,
            added_at=record.added_at,
            remote_only=remote_only,
        )


@dataclass
class ImportResult:
    filename: str
    record: Optional[BookRecord] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.record is not None
