from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class RemoteCatalogEntry:
    user_id: str
    book_hash: str
    title: str = ""
    last_read_cfi: Optional[str] = None
    percentage: int = 0
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ReadingProgress:
    last_read_cfi: str
    percentage: int
    updated_at: Optional[datetime] = None
