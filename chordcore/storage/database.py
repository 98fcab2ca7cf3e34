"""
Database - SQLAlchemy-backed key-value store

Stores JSON blobs in a single table. Uses SQLite by default; any SQLAlchemy
URL works.

This module handles ONLY database I/O.
Learning logic lives in the srs package.
"""

from __future__ import annotations
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import create_engine, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from chordcore.config import DatabaseSettings
from chordcore.storage.models import Base, KeyValueEntry


logger = logging.getLogger(__name__)


def get_engine(settings: Optional[DatabaseSettings] = None) -> Engine:
    """
    Create the SQLAlchemy engine for the configured URL.

    In-memory SQLite shares one connection so every session sees the same
    database.
    """
    settings = settings or DatabaseSettings()
    url = settings.url
    kwargs: dict[str, Any] = {"echo": settings.echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(pool_size=5, max_overflow=10, pool_pre_ping=True)
    return create_engine(url, **kwargs)


class SqlKeyValueStore:
    """Key-value store over the kv_entries table."""

    def __init__(self, engine: Engine, key_prefix: str = ""):
        self.engine = engine
        self.key_prefix = key_prefix
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_settings(cls, settings: Optional[DatabaseSettings] = None, key_prefix: str = "") -> "SqlKeyValueStore":
        store = cls(get_engine(settings), key_prefix=key_prefix)
        store.init_db()
        return store

    def _full_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def get_session(self) -> Session:
        return self._session_factory()

    def init_db(self) -> None:
        """
        Create the table if it does not exist.

        Safe to call multiple times.
        """
        inspector = inspect(self.engine)
        if KeyValueEntry.__tablename__ not in inspector.get_table_names():
            Base.metadata.create_all(self.engine)

    def reset_db(self) -> None:
        """
        DANGEROUS: Drop and recreate the table.

        All stored progress is lost.
        """
        Base.metadata.drop_all(self.engine)
        logger.warning("Key-value table dropped")
        self.init_db()

    def get(self, key: str) -> Optional[Any]:
        session = self.get_session()
        try:
            row = session.get(KeyValueEntry, self._full_key(key))
            if row is None:
                return None
            raw = row.value
        finally:
            session.close()

        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Undecodable value under %s; treating as absent", self._full_key(key))
            return None

    def set(self, key: str, value: Any) -> None:
        self.set_raw(key, json.dumps(value))

    def set_raw(self, key: str, raw: str) -> None:
        """Store text verbatim (used to load foreign or damaged data)."""
        session = self.get_session()
        try:
            session.merge(
                KeyValueEntry(
                    key=self._full_key(key),
                    value=raw,
                    updated_at=datetime.now(timezone.utc),
                )
            )
            session.commit()
        finally:
            session.close()

    def remove(self, key: str) -> None:
        session = self.get_session()
        try:
            row = session.get(KeyValueEntry, self._full_key(key))
            if row is not None:
                session.delete(row)
                session.commit()
        finally:
            session.close()

    def keys(self) -> list[str]:
        session = self.get_session()
        try:
            stmt = select(KeyValueEntry.key).where(KeyValueEntry.key.startswith(self.key_prefix, autoescape=True))
            prefix_len = len(self.key_prefix)
            return [k[prefix_len:] for k in session.scalars(stmt).all()]
        finally:
            session.close()
