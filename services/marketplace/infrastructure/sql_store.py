"""Key/value backend stored in a single SQL table."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from services.marketplace.application.interfaces import KeyValueBackend
from services.marketplace.infrastructure.db import Base


class KeyValueRecord(Base):
    __tablename__ = "kv_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class SqlKeyValueBackend(KeyValueBackend):
    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def read(self, key: str) -> str | None:
        with self._session_factory() as db:
            record = db.get(KeyValueRecord, key)
            if record is None:
                return None
            return record.value

    def write(self, key: str, raw: str) -> None:
        now = datetime.now(timezone.utc)
        with self._session_factory() as db:
            record = db.get(KeyValueRecord, key)
            if record is None:
                db.add(KeyValueRecord(key=key, value=raw, updated_at=now))
            else:
                record.value = raw
                record.updated_at = now
            db.commit()

    def delete(self, key: str) -> None:
        with self._session_factory() as db:
            record = db.get(KeyValueRecord, key)
            if record is not None:
                db.delete(record)
                db.commit()
