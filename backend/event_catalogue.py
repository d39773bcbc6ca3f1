"""
In-memory event catalogue: owns the event definitions and guards every commit
with validation and a same-day conflict check.
"""
import logging
import uuid

from backend.calendar_types import RECURRENCE_KINDS
from backend.conflicts import find_conflict
from backend.intervals import move_to_day
from backend.occurrences import occurrences_between, occurrences_on

logger = logging.getLogger(__name__)


class CalendarError(Exception):
    pass


class EventValidationError(CalendarError):
    """A create/update/move was rejected; ``str(exc)`` is shown to the user."""


class EventConflictError(EventValidationError):
    def __init__(self, message, occurrence=None):
        super().__init__(message)
        self.occurrence = occurrence


class EventNotFoundError(CalendarError):
    def __init__(self, event_id):
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


def validate_event(event):
    if not (event.title or '').strip():
        raise EventValidationError('Title is required')
    if event.end is not None:
        if event.end <= event.start:
            raise EventValidationError('End time must be after start time')
        if event.end.date() != event.start.date():
            raise EventValidationError('Events must end on the day they start')

    rule = event.recurrence
    if rule is None:
        return
    if rule.kind not in RECURRENCE_KINDS:
        raise EventValidationError(f"Unknown recurrence type: {rule.kind}")
    if isinstance(rule.interval, bool) or not isinstance(rule.interval, int) or rule.interval < 1:
        raise EventValidationError('Recurrence interval must be a positive number')
    if any(not isinstance(d, int) or not 0 <= d <= 6 for d in rule.days_of_week):
        raise EventValidationError('Days of week must be between 0 (Sunday) and 6 (Saturday)')
    if rule.occurrence_count is not None and rule.occurrence_count < 1:
        raise EventValidationError('Occurrence count must be at least 1')
    if rule.end_date is not None and rule.end_date < event.start.date():
        raise EventValidationError('Recurrence end date must be on/after the start date')


class EventCatalogue:
    """The full set of event definitions, in insertion order.

    Events are immutable; ``update`` swaps the stored object for a new one
    with the same id. Every mutating call either commits completely or
    raises and leaves the catalogue untouched.
    """

    def __init__(self, events=None):
        self._events = list(events or [])

    @property
    def events(self):
        return tuple(self._events)

    def __len__(self):
        return len(self._events)

    def _index_of(self, event_id):
        for idx, ev in enumerate(self._events):
            if ev.id == event_id:
                return idx
        return None

    def get(self, event_id):
        idx = self._index_of(event_id)
        if idx is None:
            raise EventNotFoundError(event_id)
        return self._events[idx]

    def occurrences_on(self, day_value, filter_text=None):
        return occurrences_on(self._events, day_value, filter_text)

    def occurrences_between(self, start_day, end_day, filter_text=None):
        return occurrences_between(self._events, start_day, end_day, filter_text)

    def find_conflict(self, candidate, exclude_id=None):
        return find_conflict(self._events, candidate, exclude_id)

    def has_conflict(self, candidate, exclude_id=None):
        return self.find_conflict(candidate, exclude_id) is not None

    def _check(self, event, exclude_id=None):
        validate_event(event)
        clash = self.find_conflict(event, exclude_id)
        if clash is not None:
            logger.info("Rejected %r: overlaps %r on %s", event.title, clash.event.title, clash.day)
            raise EventConflictError('This event conflicts with an existing event', clash)

    def add(self, draft):
        self._check(draft)
        event = draft.with_id(uuid.uuid4().hex)
        self._events.append(event)
        return event

    def update(self, event):
        idx = self._index_of(event.id)
        if idx is None:
            raise EventNotFoundError(event.id)
        self._check(event, exclude_id=event.id)
        self._events[idx] = event
        return event

    def delete(self, event_id):
        idx = self._index_of(event_id)
        if idx is None:
            raise EventNotFoundError(event_id)
        return self._events.pop(idx)

    def move(self, event_id, day_value):
        """Move an event to another day, keeping its times."""
        moved = move_to_day(self.get(event_id), day_value)
        try:
            return self.update(moved)
        except EventConflictError as exc:
            raise EventConflictError(
                'Cannot move event: There is a time conflict with an existing event.',
                exc.occurrence,
            ) from exc
