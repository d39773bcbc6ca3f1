"""
Persistence for the event catalogue: one JSON blob in the key-value table.

Loading never raises. A broken blob yields an empty list and broken records
are skipped one by one, so a single bad entry cannot hide the rest.
"""
import json
import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from backend.calendar_types import DEFAULT_COLOR, Event, RecurrencePattern
from models import db, StoredValue
from services.validation_service import parse_datetime_value, parse_day_value, parse_days_of_week

logger = logging.getLogger(__name__)


def _storage_key(key=None):
    return key or current_app.config.get('EVENTS_STORAGE_KEY', 'events')


def _recurrence_from_dict(raw):
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise TypeError('recurrence must be an object')
    kind = str(raw.get('kind') or raw.get('type') or '').strip().lower()
    if not kind:
        raise ValueError('recurrence kind missing')

    end_date = None
    end_raw = raw.get('end_date') or raw.get('endDate')
    if end_raw:
        end_date = parse_day_value(str(end_raw)[:10])
        if end_date is None:
            raise ValueError(f"unparseable recurrence end date {end_raw!r}")

    count = raw.get('occurrence_count', raw.get('occurrences'))
    return RecurrencePattern(
        kind=kind,
        interval=int(raw.get('interval') or 1),
        days_of_week=frozenset(parse_days_of_week(raw.get('days_of_week', raw.get('daysOfWeek')))),
        end_date=end_date,
        occurrence_count=int(count) if count not in (None, '') else None,
    )


def event_from_dict(raw):
    """Rebuild a stored event; raises KeyError/TypeError/ValueError for unusable records."""
    if not isinstance(raw, dict):
        raise TypeError('event record must be an object')
    event_id = raw['id']
    start_raw = raw.get('start') or raw.get('date')
    start = parse_datetime_value(start_raw)
    if start is None:
        raise ValueError(f"unparseable start {start_raw!r}")
    # An unreadable end only costs the event its duration.
    end = parse_datetime_value(raw.get('end') or raw.get('endTime'))
    return Event(
        id=str(event_id),
        title=str(raw.get('title') or ''),
        start=start,
        end=end,
        description=str(raw.get('description') or ''),
        color=str(raw.get('color') or DEFAULT_COLOR),
        recurrence=_recurrence_from_dict(raw.get('recurrence')),
    )


def events_to_json(events):
    return json.dumps([ev.to_dict() for ev in events])


def events_from_json(text):
    try:
        records = json.loads(text)
    except (TypeError, ValueError) as exc:
        logger.warning("Stored events are not valid JSON: %s", exc)
        return []
    if not isinstance(records, list):
        logger.warning("Stored events are not a list (got %s)", type(records).__name__)
        return []

    events = []
    for idx, raw in enumerate(records):
        try:
            events.append(event_from_dict(raw))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping stored event #%s: %s", idx, exc)
    return events


def load_events(key=None):
    storage_key = _storage_key(key)
    try:
        row = db.session.get(StoredValue, storage_key)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning(f"Failed to load events from {storage_key}: {exc}")
        return []
    if not row or not row.value:
        return []
    return events_from_json(row.value)


def save_events(events, key=None):
    """Persist the catalogue; returns False instead of raising when storage fails."""
    storage_key = _storage_key(key)
    payload = events_to_json(events)
    try:
        row = db.session.get(StoredValue, storage_key)
        if row is None:
            row = StoredValue(key=storage_key)
            db.session.add(row)
        row.value = payload
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"Failed to save events to {storage_key}: {exc}")
        return False
    return True
