from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker


def _engine_options(dsn: str) -> dict:
    if dsn.startswith("sqlite"):
        # The storage-change listener thread may trigger reads.
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


class Base(DeclarativeBase):
    pass


def create_session_factory(dsn: str):
    engine = create_engine(dsn, **_engine_options(dsn))
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
