from datetime import date, timedelta

from backend.recurrence import weekday_index

SHORT_WEEKDAYS = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']
LONG_WEEKDAYS = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']


def month_bounds(day_value):
    first = day_value.replace(day=1)
    next_month = (first.replace(day=28) + timedelta(days=4)).replace(day=1)
    return first, next_month - timedelta(days=1)


def calendar_days(month_day, today=None):
    """Days of the month grid for ``month_day``, padded to whole Sunday-first weeks."""
    today = today or date.today()
    first, last = month_bounds(month_day)
    grid_start = first - timedelta(days=weekday_index(first))
    grid_end = last + timedelta(days=6 - weekday_index(last))

    days = []
    current = grid_start
    while current <= grid_end:
        days.append({
            'date': current,
            'is_current_month': current.month == first.month and current.year == first.year,
            'is_today': current == today,
        })
        current += timedelta(days=1)
    return days


def weekday_names(short=True, start_from_monday=False):
    names = list(SHORT_WEEKDAYS if short else LONG_WEEKDAYS)
    if start_from_monday:
        return names[1:] + names[:1]
    return names

