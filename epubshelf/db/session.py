from pathlib import Path

from sqlmodel import create_engine, Session
from sqlalchemy.engine import Engine


def make_engine(db_path: Path) -> Engine:
    return create_engine(f"sqlite:///{db_path}", echo=False)


def get_session(engine: Engine) -> Session:
    return Session(engine)
