from .book import BookRecord, utcnow
from .settings import ReaderSettings
from .catalog import RemoteCatalogEntry, ReadingProgress
from .library import LibraryEntry, StoredBook, ImportResult

__all__ = [
    "BookRecord",
    "utcnow",
    "ReaderSettings",
    "RemoteCatalogEntry",
    "ReadingProgress",
    "LibraryEntry",
    "StoredBook",
    "ImportResult",
]
