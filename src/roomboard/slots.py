from datetime import date, datetime, timedelta
from typing import List, Tuple

import pytz

from .models import SLOT_WIDTH, HoursWindow, Slot
from .timeparse import parse_time


class HoursParseError(ValueError):
    """An open or close boundary could not be parsed."""


def format_label(instant: datetime) -> str:
    """'8:00 AM' style label, no leading zero on the hour."""
    return instant.strftime("%I:%M %p").lstrip("0")


def align_to_slot(instant: datetime, tz: pytz.BaseTzInfo) -> datetime:
    """Rounds down to the enclosing :00 or :30 boundary."""
    aligned_minute = 0 if instant.minute < 30 else 30
    return tz.normalize(instant.replace(minute=aligned_minute, second=0, microsecond=0))


def resolve_bounds(day: date, window: HoursWindow, tz: pytz.BaseTzInfo) -> Tuple[datetime, datetime]:
    """
    Parses the window's boundaries on ``day``.

    A close that is not strictly after the open means the window crosses
    midnight; the close is moved to the next calendar day.

    Raises:
        HoursParseError: If either boundary is unparseable.
    """
    open_at = parse_time(day, window.open_time, tz)
    close_at = parse_time(day, window.close_time, tz)
    if open_at is None or close_at is None:
        raise HoursParseError(
            f"Could not parse opening hours: {window.open_time} - {window.close_time}"
        )
    if close_at <= open_at:
        close_at = tz.localize(close_at.replace(tzinfo=None) + timedelta(days=1), is_dst=False)
    return open_at, close_at


def spans_midnight(day: date, window: HoursWindow, tz: pytz.BaseTzInfo) -> bool:
    """True when the window closes on the following day. Unparseable windows never do."""
    open_at = parse_time(day, window.open_time, tz)
    close_at = parse_time(day, window.close_time, tz)
    if open_at is None or close_at is None:
        return False
    return close_at <= open_at


def build_slot_grid(day: date, window: HoursWindow, tz: pytz.BaseTzInfo) -> List[Slot]:
    """
    Generates the contiguous 30-minute slots covering the window.

    The first slot starts at the open time rounded down to :00 or :30. No slot
    ends after the close; a window shorter than one slot gives an empty grid.
    """
    open_at, close_at = resolve_bounds(day, window, tz)

    current = align_to_slot(open_at, tz)

    slots: List[Slot] = []
    while True:
        slot_end = tz.normalize(current + SLOT_WIDTH)
        if slot_end > close_at:
            break
        slots.append(Slot(start=current, end=slot_end, label=format_label(current)))
        current = slot_end
    return slots
