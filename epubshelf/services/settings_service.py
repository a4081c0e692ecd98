from sqlalchemy.engine import Engine
from sqlmodel import select

from epubshelf.db.session import get_session
from epubshelf.models.settings import FONT_SIZE_RANGE, MARGINS, THEMES, ReaderSettings

FIELDS = ("theme", "font_family", "font_size", "line_height", "margins")


def _validate(changes: dict):
    unknown = set(changes) - set(FIELDS)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
    if "theme" in changes and changes["theme"] not in THEMES:
        raise ValueError(f"Unknown theme {changes['theme']!r}")
    if "margins" in changes and changes["margins"] not in MARGINS:
        raise ValueError(f"Unknown margins {changes['margins']!r}")
    if "font_size" in changes:
        lo, hi = FONT_SIZE_RANGE
        if not lo <= int(changes["font_size"]) <= hi:
            raise ValueError(f"font_size must be between {lo} and {hi}")
    if "line_height" in changes and float(changes["line_height"]) <= 0:
        raise ValueError("line_height must be positive")
    if "font_family" in changes and not str(changes["font_family"]).strip():
        raise ValueError("font_family must not be empty")


def get_settings(engine: Engine) -> ReaderSettings:
    with get_session(engine) as session:
        row = session.exec(select(ReaderSettings).where(ReaderSettings.id == 1)).first()
        return row if row else ReaderSettings(id=1)


def update_settings(engine: Engine, **changes) -> ReaderSettings:
    _validate(changes)
    with get_session(engine) as session:
        row = session.exec(select(ReaderSettings).where(ReaderSettings.id == 1)).first()
        if not row:
            row = ReaderSettings(id=1)
            session.add(row)
        for key, value in changes.items():
            setattr(row, key, value)
        session.commit()
        session.refresh(row)
        return row
