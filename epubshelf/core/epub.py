import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import ebooklib
from ebooklib import epub

from epubshelf.core.errors import MetadataExtractionFailed
from epubshelf.core.logging import get_logger
from epubshelf.core.toc import TocItem

log = get_logger(__name__)


@dataclass
class ParsedBook:
    title: str = ""
    author: str = ""
    description: str = ""
    cover_bytes: Optional[bytes] = None
    toc: list[TocItem] = field(default_factory=list)


def _first_dc(book: epub.EpubBook, name: str) -> str:
    values = book.get_metadata("DC", name)
    if values and values[0] and values[0][0]:
        return str(values[0][0]).strip()
    return ""


def _find_cover(book: epub.EpubBook) -> Optional[bytes]:
    for item in book.get_items_of_type(ebooklib.ITEM_COVER):
        return item.get_content()

    for _, attrs in book.get_metadata("OPF", "cover"):
        cover_id = (attrs or {}).get("content")
        if cover_id:
            item = book.get_item_with_id(cover_id)
            if item is not None:
                return item.get_content()

    for item in book.get_items_of_type(ebooklib.ITEM_IMAGE):
        if "cover" in (item.get_name() or "").lower():
            return item.get_content()
    return None


def _convert_toc(nodes) -> list[TocItem]:
    out = []
    for node in nodes or []:
        if isinstance(node, tuple):
            section, children = node
            out.append(TocItem(
                label=getattr(section, "title", "") or "",
                href=getattr(section, "href", "") or "",
                subitems=_convert_toc(children),
            ))
        elif isinstance(node, list):
            out.extend(_convert_toc(node))
        else:
            out.append(TocItem(label=getattr(node, "title", "") or "", href=getattr(node, "href", "") or ""))
    return out


def parse_epub_file(path: Path) -> ParsedBook:
    try:
        book = epub.read_epub(str(path))
    except Exception as e:
        raise MetadataExtractionFailed(f"{Path(path).name}: {e}") from e

    parsed = ParsedBook(
        title=_first_dc(book, "title"),
        author=_first_dc(book, "creator"),
        description=_first_dc(book, "description"),
        toc=_convert_toc(book.toc),
    )
    try:
        parsed.cover_bytes = _find_cover(book)
    except Exception as e:
        log.debug("cover lookup failed for %s: %s", path, e)
    return parsed


def parse_epub(data: bytes) -> ParsedBook:
    fd, tmp = tempfile.mkstemp(suffix=".epub")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        return parse_epub_file(Path(tmp))
    finally:
        os.unlink(tmp)
