from epubshelf.core.config import ShelfConfig
from epubshelf.core.session import SessionContext
from epubshelf.engine import ShelfEngine

__all__ = ["ShelfConfig", "SessionContext", "ShelfEngine"]
