"""Durable event storage, schema migration and per-day duration queries."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Dict, Optional, Tuple

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import DuplicateIDError, StoreError
from .events import (
    BROWSER_ACTIVE_SPAN,
    CURRENT_SCHEMA_VERSION,
    LEGACY_SCHEMA_VERSION,
    TERMINAL_COMMAND,
    Event,
)
from .models import EventRecord

logger = logging.getLogger(__name__)


def _to_utc_naive(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _is_unique_violation(exc: IntegrityError) -> bool:
    return "unique" in str(exc.orig).lower()


def insert_event(db: Session, event: Event, payload: str) -> EventRecord:
    """Persist ``event`` with its verbatim ``payload``.

    The uniqueness constraint on ``event_id`` is the only guard against
    duplicates; a second insert with the same id raises ``DuplicateIDError``
    and leaves the stored row untouched.
    """
    record = EventRecord(
        event_id=event.event_id,
        type=event.type,
        source=event.source,
        schema_version=event.schema_version,
        start_ts=event.start_ts,
        end_ts=event.end_ts,
        start_at=_to_utc_naive(event.start_at),
        end_at=_to_utc_naive(event.end_at),
        url=event.url,
        title=event.title,
        cwd=event.cwd,
        command=event.command,
        payload=payload,
    )
    try:
        db.add(record)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if _is_unique_violation(exc):
            raise DuplicateIDError(event.event_id) from exc
        raise StoreError("failed to persist event") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError("failed to persist event") from exc
    return record


def migrate_schema_v2(db: Session) -> bool:
    """Upgrade legacy ``schema_version`` 1 rows in a single transaction.

    Terminal commands get ``end_ts := start_ts`` and every version 1 row is
    bumped to version 2. Returns ``True`` when rows were migrated and
    ``False`` when nothing was left to do.
    """
    try:
        legacy = db.execute(
            select(EventRecord.id).where(EventRecord.schema_version == LEGACY_SCHEMA_VERSION).limit(1)
        ).first()
        if legacy is None:
            db.rollback()
            return False

        db.execute(
            update(EventRecord)
            .where(
                EventRecord.schema_version == LEGACY_SCHEMA_VERSION,
                EventRecord.type == TERMINAL_COMMAND,
            )
            .values(end_ts=EventRecord.start_ts, end_at=EventRecord.start_at)
            .execution_options(synchronize_session=False)
        )
        db.execute(
            update(EventRecord)
            .where(EventRecord.schema_version == LEGACY_SCHEMA_VERSION)
            .values(schema_version=CURRENT_SCHEMA_VERSION)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError("schema migration failed") from exc

    logger.info("migration: schema_version %d -> %d completed", LEGACY_SCHEMA_VERSION, CURRENT_SCHEMA_VERSION)
    return True


def day_bounds(day: date, tz: Optional[tzinfo] = None) -> Tuple[datetime, datetime]:
    """Return the naive UTC ``[start, end)`` window of a calendar day.

    ``tz=None`` uses the host's local time zone.
    """
    next_day = day + timedelta(days=1)
    if tz is None:
        start = datetime.combine(day, time.min).astimezone()
        end = datetime.combine(next_day, time.min).astimezone()
    else:
        start = datetime.combine(day, time.min, tzinfo=tz)
        end = datetime.combine(next_day, time.min, tzinfo=tz)
    return _to_utc_naive(start), _to_utc_naive(end)


def _seconds_between(start: datetime, end: Optional[datetime]) -> int:
    if end is None:
        return 0
    return max(int((end - start).total_seconds()), 0)


def terminal_durations_by_cwd(db: Session, day: date, tz: Optional[tzinfo] = None) -> Dict[str, int]:
    """Map each working directory to the span from its first start to last end."""
    lower, upper = day_bounds(day, tz)
    stmt: Select = (
        select(EventRecord.cwd, func.min(EventRecord.start_at), func.max(EventRecord.end_at))
        .where(
            EventRecord.type == TERMINAL_COMMAND,
            EventRecord.start_at >= lower,
            EventRecord.start_at < upper,
        )
        .group_by(EventRecord.cwd)
    )
    try:
        rows = db.execute(stmt).all()
    except SQLAlchemyError as exc:
        raise StoreError("failed to compute terminal stats") from exc

    return {cwd: _seconds_between(first_start, last_end) for cwd, first_start, last_end in rows}


def browser_durations_by_title(
    db: Session,
    day: date,
    tz: Optional[tzinfo] = None,
    key: str = "title",
) -> Dict[str, int]:
    """Sum the clamped duration of every browser span, grouped per page.

    With ``key="title"`` spans are grouped by title, falling back to the URL
    when the title is blank; ``key="url"`` groups by URL.
    """
    lower, upper = day_bounds(day, tz)
    stmt: Select = select(
        EventRecord.title, EventRecord.url, EventRecord.start_at, EventRecord.end_at
    ).where(
        EventRecord.type == BROWSER_ACTIVE_SPAN,
        EventRecord.start_at >= lower,
        EventRecord.start_at < upper,
    )
    try:
        rows = db.execute(stmt).all()
    except SQLAlchemyError as exc:
        raise StoreError("failed to compute browser stats") from exc

    out: Dict[str, int] = {}
    for title, url, start_at, end_at in rows:
        if key == "url":
            group = url or ""
        else:
            group = (title or "").strip() or (url or "")
        out[group] = out.get(group, 0) + _seconds_between(start_at, end_at)
    return out
