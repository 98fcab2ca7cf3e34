"""
SQLAlchemy ORM model for the key-value store.
"""

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class KeyValueEntry(Base):
    """
    One stored JSON blob.

    Each progress map (one per item type) and each stats document is a
    single row.
    """
    __tablename__ = 'kv_entries'

    key = Column(String(255), primary_key=True, nullable=False)
    value = Column(Text, nullable=False)  # JSON text
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<KeyValueEntry({self.key})>"
