from backend.intervals import event_bounds, overlaps
from backend.occurrences import occurrences_on


def find_conflict(events, candidate, exclude_id=None):
    """Return the first occurrence on the candidate's day that overlaps it, else None."""
    start, end = event_bounds(candidate)
    for occ in occurrences_on(events, candidate.day):
        if exclude_id and occ.event_id == exclude_id:
            continue
        if overlaps(start, end, occ.start, occ.end):
            return occ
    return None


def has_conflict(events, candidate, exclude_id=None):
    return find_conflict(events, candidate, exclude_id) is not None
