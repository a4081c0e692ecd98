from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC timestamps, also on backends that drop the offset."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class BookRecord(SQLModel, table=True):
    id: str = Field(primary_key=True)
    title: str = ""
    author: str = ""
    description: str = ""
    cover: Optional[str] = None  # data: URI
    added_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)

    def __repr__(self):
        return f"BookRecord(id={self.id[:12]}, title={self.title!r})"
