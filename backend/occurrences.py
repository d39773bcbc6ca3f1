from datetime import timedelta

from backend.calendar_types import Occurrence
from backend.intervals import materialize_on
from backend.recurrence import matches


def _materialize(event, day_value):
    start, end = materialize_on(event.start, event.end, day_value)
    return Occurrence(event=event, start=start, end=end)


def _matches_filter(event, needle):
    title = (event.title or '').casefold()
    description = (event.description or '').casefold()
    return needle in title or needle in description


def occurrences_on(events, day_value, filter_text=None):
    """Occurrences active on ``day_value``.

    Single events come first, then recurring ones; each group keeps the
    catalogue order.
    """
    single = [ev for ev in events if not ev.recurrence and ev.day == day_value]
    recurring = [ev for ev in events if ev.recurrence and matches(ev.recurrence, ev.start, day_value)]

    needle = (filter_text or '').strip().casefold()
    results = []
    for ev in single + recurring:
        if needle and not _matches_filter(ev, needle):
            continue
        results.append(_materialize(ev, day_value))
    return results


def occurrences_between(events, start_day, end_day, filter_text=None):
    """Map each day in [start_day, end_day] that has occurrences to its list."""
    by_day = {}
    current = start_day
    while current <= end_day:
        day_items = occurrences_on(events, current, filter_text)
        if day_items:
            by_day[current] = day_items
        current += timedelta(days=1)
    return by_day
