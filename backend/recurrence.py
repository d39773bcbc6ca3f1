import calendar
import functools
import math
from datetime import date, datetime, timedelta

# Month lengths repeat every 400 Gregorian years.
_CYCLE_MONTHS = 400 * 12


def _as_day(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def weekday_index(day_value):
    """Weekday number with Sunday = 0 through Saturday = 6."""
    return (day_value.weekday() + 1) % 7


def _interval(pattern):
    try:
        return max(int(pattern.interval or 1), 1)
    except (TypeError, ValueError):
        return 1


def _kind(pattern):
    return str(pattern.kind or '').lower()


def _weekdays(pattern):
    return {d for d in (pattern.days_of_week or ()) if isinstance(d, int) and 0 <= d <= 6}


def _occurrence_cap(pattern):
    count = pattern.occurrence_count
    if count is None:
        return None
    try:
        count = int(count)
    except (TypeError, ValueError):
        return None
    return count if count >= 1 else None


def _months_between(start_day, day_value):
    return (day_value.year - start_day.year) * 12 + (day_value.month - start_day.month)


def _days_in_month(year, month):
    if month == 2 and calendar.isleap(year):
        return 29
    return calendar.mdays[month]


@functools.lru_cache(maxsize=256)
def _monthly_prefix(base, day_of_month, interval):
    """Running count of months long enough for ``day_of_month`` over one full step cycle.

    ``base`` is the anchor's month index within the 400-year Gregorian cycle.
    Entry k is the number of hits among the first k steps.
    """
    period = _CYCLE_MONTHS // math.gcd(_CYCLE_MONTHS, interval)
    counts = [0]
    for step in range(period):
        year, month_index = divmod((base + step * interval) % _CYCLE_MONTHS, 12)
        hit = day_of_month <= _days_in_month(year, month_index + 1)
        counts.append(counts[-1] + hit)
    return tuple(counts)


def _prefix_for(start_day, interval):
    base = (start_day.year * 12 + start_day.month - 1) % _CYCLE_MONTHS
    return _monthly_prefix(base, start_day.day, interval)


def _monthly_hits(start_day, interval, steps):
    """Occurrences among the first ``steps`` monthly steps from the anchor."""
    if start_day.day <= 28:
        return steps
    prefix = _prefix_for(start_day, interval)
    full, rest = divmod(steps, len(prefix) - 1)
    return full * prefix[-1] + prefix[rest]


def _monthly_step_of(start_day, interval, n):
    """Step index (0-based) holding the n-th monthly occurrence."""
    if start_day.day <= 28:
        return n - 1
    prefix = _prefix_for(start_day, interval)
    # The anchor month is always a hit, so every cycle has at least one.
    full, position = divmod(n - 1, prefix[-1])
    return full * (len(prefix) - 1) + prefix.index(position + 1) - 1


def _rule_matches(pattern, start_day, day_value):
    days_since = (day_value - start_day).days
    if days_since < 0:
        return False
    kind = _kind(pattern)
    interval = _interval(pattern)

    if kind in ('daily', 'custom'):
        return days_since % interval == 0
    if kind == 'weekly':
        if weekday_index(day_value) not in _weekdays(pattern):
            return False
        weeks_since = days_since // 7
        return weeks_since % interval == 0
    if kind == 'monthly':
        # No clamping to month length: a series anchored on the 31st skips shorter months.
        if day_value.day != start_day.day:
            return False
        return _months_between(start_day, day_value) % interval == 0
    return False


def _occurrence_number(pattern, start_day, day_value):
    """1-based position of ``day_value`` in the series. ``day_value`` must match the rule."""
    days_since = (day_value - start_day).days
    kind = _kind(pattern)
    interval = _interval(pattern)

    if kind == 'weekly':
        weekdays = _weekdays(pattern)
        block = days_since // 7
        block_start = start_day + timedelta(days=7 * block)
        in_block = sum(
            1 for offset in range((day_value - block_start).days + 1)
            if weekday_index(block_start + timedelta(days=offset)) in weekdays
        )
        return (block // interval) * len(weekdays) + in_block
    if kind == 'monthly':
        steps = _months_between(start_day, day_value) // interval + 1
        return _monthly_hits(start_day, interval, steps)
    return days_since // interval + 1


def matches(pattern, anchor, candidate):
    """Return True if ``pattern`` anchored at ``anchor`` has an occurrence on ``candidate``.

    Both dates are compared by calendar day; time of day plays no part in
    membership. ``end_date`` is inclusive, and ``occurrence_count`` bounds
    the series at its n-th occurrence. When both are set both apply.
    """
    start_day = _as_day(anchor)
    day_value = _as_day(candidate)
    if day_value < start_day:
        return False
    end_day = _as_day(pattern.end_date)
    if end_day and day_value > end_day:
        return False
    if not _rule_matches(pattern, start_day, day_value):
        return False

    cap = _occurrence_cap(pattern)
    if cap is not None and _occurrence_number(pattern, start_day, day_value) > cap:
        return False
    return True


def nth_occurrence(pattern, anchor, n):
    """Date of the n-th occurrence (1-based), or None if the series never reaches it.

    A series whose n-th occurrence would fall after ``date.max`` never reaches it.
    """
    if n < 1:
        return None
    start_day = _as_day(anchor)
    end_day = _as_day(pattern.end_date)
    kind = _kind(pattern)
    interval = _interval(pattern)

    try:
        if kind in ('daily', 'custom'):
            result = start_day + timedelta(days=(n - 1) * interval)
        elif kind == 'weekly':
            weekdays = _weekdays(pattern)
            if not weekdays:
                return None
            # Every active 7-day block holds each selected weekday exactly once.
            full_blocks, position = divmod(n - 1, len(weekdays))
            block_start = start_day + timedelta(days=7 * interval * full_blocks)
            hits = []
            for offset in range(7):
                block_day = block_start + timedelta(days=offset)
                if weekday_index(block_day) in weekdays:
                    hits.append(block_day)
            result = hits[position]
        elif kind == 'monthly':
            step = _monthly_step_of(start_day, interval, n)
            month_index = start_day.month - 1 + step * interval
            year = start_day.year + month_index // 12
            if year > date.max.year:
                return None
            result = date(year, month_index % 12 + 1, start_day.day)
        else:
            return None
    except OverflowError:
        return None

    if end_day and result > end_day:
        return None
    return result
