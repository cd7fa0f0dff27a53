"""
Date range filters for the invoice history
"""
from datetime import datetime, time, timedelta, timezone as dt_timezone

from django.utils import timezone

DATE_FILTER_CHOICES = [
    ('all', 'All Time'),
    ('today', 'Today'),
    ('7days', 'Last 7 Days'),
    ('30days', 'Last 30 Days'),
    ('90days', 'Last 90 Days'),
    ('custom', 'Custom Range'),
]

PRESET_DAYS = {
    'today': 0,
    '7days': 7,
    '30days': 30,
    '90days': 90,
}


def start_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.min))


def end_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.max))


def invoice_date_range(date_filter, today=None, start=None, end=None):
    """
    Resolve a date filter to ``(start, end)`` aware datetimes.

    Presets run from the start of the day N days back to the end of today;
    a custom range uses whichever of ``start``/``end`` was given. ``all``
    (or anything unknown) gives ``(None, None)``.
    """
    today = today or timezone.localdate()
    if date_filter in PRESET_DAYS:
        return start_of_day(today - timedelta(days=PRESET_DAYS[date_filter])), end_of_day(today)
    if date_filter == 'custom':
        return (
            start_of_day(start) if start else None,
            end_of_day(end) if end else None,
        )
    return None, None


def to_api_datetime(value):
    """UTC ISO-8601 with a ``Z`` suffix, the format the API filters on"""
    if value is None:
        return None
    utc = value.astimezone(dt_timezone.utc)
    return utc.isoformat(timespec='milliseconds').replace('+00:00', 'Z')
