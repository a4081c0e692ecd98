"""Chapter lookup over an EPUB table of contents.

The renderer reports the current position as a spine href. TOC entries point
at hrefs too, but spine documents do not always nest cleanly under TOC
entries, so the lookup is a best-effort match: the *last* entry of the
flattened TOC whose path (fragment stripped) equals, or is contained in, the
current path wins.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional


@dataclass
class TocItem:
    label: str
    href: str = ""
    subitems: list["TocItem"] = field(default_factory=list)


def _path(href: str) -> str:
    return (href or "").split("#", 1)[0]


def flatten_toc(items: Iterable[TocItem]) -> list[TocItem]:
    # children come before their parent
    out: list[TocItem] = []
    for item in items:
        if item.subitems:
            out.extend(flatten_toc(item.subitems))
        out.append(item)
    return out


def matches(item: TocItem, href: str) -> bool:
    item_path = _path(item.href)
    if not item_path:
        return False
    current = _path(href)
    return item_path == current or item_path in current


def resolve_chapter(toc: Iterable[TocItem], href: str) -> Optional[TocItem]:
    flat = flatten_toc(toc)
    for item in reversed(flat):
        if matches(item, href):
            return item
    return None


def resolve_chapter_title(toc: Iterable[TocItem], href: str) -> Optional[str]:
    item = resolve_chapter(toc, href)
    return item.label if item else None


def is_active(item: TocItem, href: str) -> bool:
    return matches(item, href)
