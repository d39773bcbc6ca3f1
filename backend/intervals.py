from dataclasses import replace
from datetime import datetime, timedelta

DEFAULT_DURATION = timedelta(hours=1)


def overlaps(start1, end1, start2, end2):
    """Half-open overlap test: [start1, end1) against [start2, end2)."""
    return start1 < end2 and start2 < end1


def effective_end(start, end=None):
    # Missing or inverted end times fall back to the default duration.
    if end is not None and end > start:
        return end
    return start + DEFAULT_DURATION


def event_bounds(event):
    return event.start, effective_end(event.start, event.end)


def materialize_on(start, end, day):
    """Place an interval on another calendar day, keeping time of day and duration."""
    duration = effective_end(start, end) - start
    new_start = datetime.combine(day, start.time())
    return new_start, new_start + duration


def move_to_day(event, day):
    """Return a copy of ``event`` starting on ``day`` at the same wall-clock time.

    The end keeps its own time of day on the new date, the way a dragged
    event lands in another grid cell.
    """
    new_start = datetime.combine(day, event.start.time())
    new_end = datetime.combine(day, event.end.time()) if event.end else None
    return replace(event, start=new_start, end=new_end)
