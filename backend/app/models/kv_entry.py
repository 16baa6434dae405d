"""
KVEntry model: one row per document key.
"""
from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime

from app.core.database import Base
from app.core.config import settings


class KVEntry(Base):
    """A single JSON document addressed by an opaque string key."""
    __tablename__ = settings.KV_TABLE_NAME

    key = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<KVEntry {self.key}>"
