"""
Time-of-day parsing for hours strings.

The hours source is inconsistent about how it writes times ("9:00am",
"4:30 pm", "16:00", "12 am", ...). ``parse_time`` tries each entry of
``TIME_FORMATS`` in order and returns the first that parses, anchored to the
given calendar date in the given timezone.

Order matters: richest shapes first (12-hour with minutes and meridiem),
then 24-hour, then bare-hour meridiem forms.
"""

from datetime import date, datetime, time
from typing import Optional

import pytz


TIME_FORMATS = (
    "%I:%M%p",   # 9:00am, 09:00am
    "%I:%M %p",  # 9:00 am
    "%H:%M",     # 16:00, 7:30
    "%I %p",     # 12 am
    "%I%p",      # 12am
)


def parse_clock(time_str: str) -> Optional[time]:
    """Parses a time string to a naive time-of-day, or None if no format matches."""
    if not isinstance(time_str, str):
        return None
    text = time_str.strip()
    if not text:
        return None
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def parse_time(day: date, time_str: str, tz: pytz.BaseTzInfo) -> Optional[datetime]:
    """
    Anchors a time string to ``day`` in ``tz``.

    Args:
        day: The calendar date the time belongs to.
        time_str: A time in one of the TIME_FORMATS shapes.
        tz: A pytz timezone.

    Returns:
        A timezone-aware datetime, or None when the string is unparseable.
    """
    clock = parse_clock(time_str)
    if clock is None:
        return None
    return tz.localize(datetime.combine(day, clock), is_dst=False)
