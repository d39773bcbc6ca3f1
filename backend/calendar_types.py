"""Value types shared by the calendar engine, the event store and the API."""
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import FrozenSet, Optional

RECURRENCE_KINDS = ('daily', 'weekly', 'monthly', 'custom')

DEFAULT_COLORS = (
    '#3B82F6',  # blue
    '#8B5CF6',  # purple
    '#EC4899',  # pink
    '#EF4444',  # red
    '#F97316',  # orange
    '#F59E0B',  # amber
    '#10B981',  # emerald
    '#14B8A6',  # teal
)
DEFAULT_COLOR = DEFAULT_COLORS[0]


@dataclass(frozen=True)
class RecurrencePattern:
    kind: str
    interval: int = 1
    days_of_week: FrozenSet[int] = field(default_factory=frozenset)
    end_date: Optional[date] = None
    occurrence_count: Optional[int] = None

    def to_dict(self):
        return {
            'kind': self.kind,
            'interval': self.interval,
            'days_of_week': sorted(self.days_of_week),
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'occurrence_count': self.occurrence_count,
        }


@dataclass(frozen=True)
class Event:
    """An event definition. Recurring events expand into one Occurrence per matching day."""
    title: str
    start: datetime
    end: Optional[datetime] = None
    description: str = ''
    color: str = DEFAULT_COLOR
    recurrence: Optional[RecurrencePattern] = None
    id: Optional[str] = None

    @property
    def day(self):
        return self.start.date()

    @property
    def is_recurring(self):
        return self.recurrence is not None

    def with_id(self, event_id):
        return replace(self, id=event_id)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'start': self.start.isoformat(),
            'end': self.end.isoformat() if self.end else None,
            'description': self.description,
            'color': self.color,
            'recurrence': self.recurrence.to_dict() if self.recurrence else None,
        }


@dataclass(frozen=True)
class Occurrence:
    """An Event placed on one concrete calendar day."""
    event: Event
    start: datetime
    end: datetime

    @property
    def event_id(self):
        return self.event.id

    @property
    def day(self):
        return self.start.date()

    def to_dict(self):
        data = self.event.to_dict()
        data.update({
            'event_id': self.event.id,
            'day': self.day.isoformat(),
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'anchor_start': self.event.start.isoformat(),
            'anchor_end': self.event.end.isoformat() if self.event.end else None,
            'is_recurring': self.event.is_recurring,
        })
        return data
