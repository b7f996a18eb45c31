"""SQLAlchemy model for ingested activity events."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class EventRecord(Base):
    """One stored event row.

    ``start_ts``/``end_ts`` keep the client's timestamp strings verbatim;
    ``start_at``/``end_at`` hold the same instants as naive UTC so that day
    windows and min/max aggregation compare correctly across offsets.
    """

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(255), nullable=False, unique=True)
    type = Column(String(64), nullable=False)
    source = Column(String(255), nullable=False)
    schema_version = Column(Integer, nullable=False, index=True)
    start_ts = Column(String(64), nullable=False)
    end_ts = Column(String(64), nullable=True)
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=True)
    url = Column(Text, nullable=True)
    title = Column(Text, nullable=True)
    cwd = Column(Text, nullable=True)
    command = Column(Text, nullable=True)
    payload = Column(Text, nullable=False)
    received_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (Index("ix_events_type_start_at", "type", "start_at"),)
