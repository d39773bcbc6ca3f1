import re
from datetime import date, datetime, time

from backend.calendar_types import DEFAULT_COLOR, Event, RecurrencePattern
from backend.event_catalogue import EventValidationError


def parse_datetime_value(value):
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        raw = str(value).strip()
        if raw.endswith('Z'):
            raw = raw[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(raw)
        except (TypeError, ValueError):
            return None
    # Everything runs on naive local wall-clock time.
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_time_str(val):
    """Parse 24h or am/pm strings into a time object; return None on failure."""
    if not val:
        return None
    if isinstance(val, time):
        return val
    s = str(val).strip().lower().replace(" ", "")

    pattern = r"^(?P<hour>\d{1,2})(:(?P<minute>\d{1,2}))?(:(?P<second>\d{1,2}))?(?P<ampm>a|p|am|pm)?$"
    m = re.match(pattern, s)
    if not m:
        return None
    try:
        hour = int(m.group("hour"))
        minute = int(m.group("minute") or 0)
        ampm = m.group("ampm")
        if m.group("second") is not None:
            sec_val = int(m.group("second"))
            if not (0 <= sec_val <= 59):
                return None
        if ampm:
            if ampm in ("p", "pm") and hour != 12:
                hour += 12
            if ampm in ("a", "am") and hour == 12:
                hour = 0
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            return None
        return time(hour=hour, minute=minute)
    except (TypeError, ValueError):
        return None


def parse_days_of_week(raw):
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        values = raw
    else:
        values = str(raw).split(",")
    days = []
    for val in values:
        try:
            day = int(val)
        except (TypeError, ValueError):
            continue
        if 0 <= day <= 6:
            days.append(day)
    return sorted(set(days))


def parse_day_value(raw):
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return datetime.strptime(str(raw), "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


def parse_month_value(raw):
    """Parse ``YYYY-MM`` (or a full day) into the first day of that month."""
    if not raw:
        return None
    try:
        return datetime.strptime(str(raw), "%Y-%m").date()
    except (TypeError, ValueError):
        day_obj = parse_day_value(raw)
        return day_obj.replace(day=1) if day_obj else None


def parse_positive_int(value, default=None):
    if value is None or value == '':
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 1 else None


def parse_recurrence_payload(raw):
    """Build a RecurrencePattern from request data; None means a single event."""
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise EventValidationError('Invalid recurrence')
    kind = str(raw.get('kind') or raw.get('type') or 'none').strip().lower()
    if kind == 'none':
        return None

    interval = parse_positive_int(raw.get('interval'), default=1)
    if interval is None:
        raise EventValidationError('Recurrence interval must be a positive number')

    end_date = None
    if raw.get('end_date'):
        end_date = parse_day_value(str(raw.get('end_date'))[:10])
        if not end_date:
            raise EventValidationError('Invalid recurrence end date')

    count_raw = raw.get('occurrence_count', raw.get('occurrences'))
    occurrence_count = parse_positive_int(count_raw)
    if count_raw not in (None, '') and occurrence_count is None:
        raise EventValidationError('Occurrence count must be at least 1')

    return RecurrencePattern(
        kind=kind,
        interval=interval,
        days_of_week=frozenset(parse_days_of_week(raw.get('days_of_week'))),
        end_date=end_date,
        occurrence_count=occurrence_count,
    )


def parse_event_payload(data, event_id=None):
    """Turn a create/update request body into an Event.

    Accepts either ISO ``start``/``end`` datetimes or the form fields
    ``day`` + ``start_time`` / ``end_time``.
    """
    data = data or {}
    if not isinstance(data, dict):
        raise EventValidationError('Invalid payload')
    title = (data.get('title') or '').strip()
    if not title:
        raise EventValidationError('Title is required')

    start = parse_datetime_value(data.get('start'))
    if start is None:
        day_obj = parse_day_value(data.get('day'))
        if not day_obj:
            raise EventValidationError('Invalid day')
        start_time = parse_time_str(data.get('start_time'))
        if not start_time:
            raise EventValidationError('Invalid start time')
        start = datetime.combine(day_obj, start_time)

    end = None
    if data.get('end'):
        end = parse_datetime_value(data.get('end'))
        if end is None:
            raise EventValidationError('Invalid end time')
    elif data.get('end_time'):
        end_time = parse_time_str(data.get('end_time'))
        if not end_time:
            raise EventValidationError('Invalid end time')
        end = datetime.combine(start.date(), end_time)

    return Event(
        id=event_id,
        title=title,
        start=start,
        end=end,
        description=(data.get('description') or '').strip(),
        color=(data.get('color') or DEFAULT_COLOR).strip(),
        recurrence=parse_recurrence_payload(data.get('recurrence')),
    )
