from sqlmodel import SQLModel
from sqlalchemy.engine import Engine

from epubshelf.models import BookRecord, ReaderSettings


def init_db(engine: Engine):
    SQLModel.metadata.create_all(engine, tables=[BookRecord.__table__, ReaderSettings.__table__])
