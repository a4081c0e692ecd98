from .base import RemoteMirror, RemoteCatalog, blob_path_for
from .supabase import SupabaseBackend

__all__ = ["RemoteMirror", "RemoteCatalog", "blob_path_for", "SupabaseBackend"]
