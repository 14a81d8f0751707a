from datetime import datetime
from zoneinfo import ZoneInfo
from sqlalchemy import Column, String, DateTime, JSON, Index, PrimaryKeyConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Global timezone configuration - Western Indonesia Time
# Change this variable to use a different timezone if needed
APP_TIMEZONE = ZoneInfo('Asia/Jakarta')


def now():
    """Return current datetime in application timezone (timezone-aware).

    Note: When stored in SQLite, timezone info is stripped (SQLite limitation).
    All stored datetimes should be treated as application time, even though
    they're stored naive.
    """
    return datetime.now(APP_TIMEZONE)


def now_iso():
    """Return the current application time as an ISO-8601 string."""
    return now().isoformat()


class Document(Base):
    """A single document in a named collection.

    Collections are addressed by path, e.g. ``stores`` or
    ``stores/<store_id>/responses``; the document body is an opaque JSON
    object owned by the caller.
    """
    __tablename__ = 'documents'
    collection = Column(String(300), nullable=False)
    doc_id = Column(String(64), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)

    __table_args__ = (
        PrimaryKeyConstraint('collection', 'doc_id', name='pk_documents'),
    )

Index('idx_documents_collection', Document.collection)
Index('idx_documents_created_at', Document.collection, Document.created_at)
