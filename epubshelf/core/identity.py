import hashlib


def resolve_book_id(title: str, author: str) -> str:
    """Content-addressable id for a book.

    SHA-256 over ``"<title>-<author>"``. Two different books sharing both
    fields map to the same id; callers pick fallback values before calling.
    """
    key = f"{title}-{author}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()
