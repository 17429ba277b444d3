"""
Booking aggregation.

Fetches the room's bookings for today (and tomorrow, when the opening hours
run past midnight), keeps the ones whose status counts as occupying the
room, and expands each into the keys of the half-hour slots it covers.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set

import pytz
from dateutil.parser import isoparse

from .config import Settings
from .models import SLOT_WIDTH, BookingInterval, BookingStatus, slot_key
from .slots import align_to_slot
from .upstream import UpstreamClient, UpstreamError


logger = logging.getLogger(__name__)

BOOKINGS_PATH = "api/1.1/space/bookings"

# Normalized status text -> status. Lookups go through normalize_status().
STATUS_TABLE: Dict[str, BookingStatus] = {
    "confirmed": BookingStatus.CONFIRMED,
    "checked in": BookingStatus.CHECKED_IN,
    "checked-in": BookingStatus.CHECKED_IN,
    "checked_in": BookingStatus.CHECKED_IN,
    "active": BookingStatus.ACTIVE,
    "cancelled": BookingStatus.CANCELLED,
    "canceled": BookingStatus.CANCELLED,
    "rejected": BookingStatus.REJECTED,
    "pending cancellation": BookingStatus.PENDING_CANCEL,
    "pending-cancel": BookingStatus.PENDING_CANCEL,
    "pending cancel": BookingStatus.PENDING_CANCEL,
    "tentative": BookingStatus.TENTATIVE,
    "mediated": BookingStatus.MEDIATED,
}

ACTIVE_STATUSES = frozenset({
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
    BookingStatus.ACTIVE,
})


def normalize_status(raw: Any) -> BookingStatus:
    """Maps a raw status string to a BookingStatus, ignoring case and extra whitespace."""
    text = " ".join(str(raw or "").lower().split())
    status = STATUS_TABLE.get(text)
    if status is not None:
        return status
    # "Cancelled by User", "Cancelled by Admin", ...
    if text.startswith("cancel"):
        return BookingStatus.CANCELLED
    return BookingStatus.UNKNOWN


def is_active(status: BookingStatus) -> bool:
    return status in ACTIVE_STATUSES


def parse_instant(raw: Any, tz: pytz.BaseTzInfo) -> Optional[datetime]:
    """Parses an ISO-8601 timestamp into ``tz``; naive timestamps are taken as local to ``tz``."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        parsed = isoparse(raw.strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return tz.localize(parsed, is_dst=False)
    return parsed.astimezone(tz)


def parse_booking(raw: Any, tz: pytz.BaseTzInfo) -> Optional[BookingInterval]:
    """
    Builds a BookingInterval from one booking object.

    Accepts either ``fromDate``/``toDate`` or ``from``/``to``. Returns None
    (and logs) when either end is missing or unparseable.
    """
    if not isinstance(raw, dict):
        logger.warning("Skipping booking that is not an object: %r", raw)
        return None
    raw_start = raw.get("fromDate") or raw.get("from")
    raw_end = raw.get("toDate") or raw.get("to")
    start = parse_instant(raw_start, tz)
    end = parse_instant(raw_end, tz)
    if start is None or end is None:
        logger.warning("Skipping booking %s with unparseable times: %r - %r",
                       raw.get("bookId", "?"), raw_start, raw_end)
        return None
    raw_status = raw.get("status")
    return BookingInterval(
        start=start,
        end=end,
        status=normalize_status(raw_status),
        raw_status=None if raw_status is None else str(raw_status),
    )


def occupied_keys(bookings: Iterable[BookingInterval], tz: pytz.BaseTzInfo) -> Set[str]:
    """
    Expands active bookings into the set of slot keys they occupy.

    Each booking is walked from the slot containing its start, in slot-width
    steps while the step is before its end. Keys carry the date so a booking
    after midnight only marks next-day slots.
    """
    taken: Set[str] = set()
    for booking in bookings:
        if not is_active(booking.status):
            continue
        cursor = align_to_slot(booking.start.astimezone(tz), tz)
        end = booking.end.astimezone(tz)
        while cursor < end:
            taken.add(slot_key(cursor))
            cursor = tz.normalize(cursor + SLOT_WIDTH)
    return taken


async def fetch_bookings_for_day(client: UpstreamClient, settings: Settings, day: date) -> List[BookingInterval]:
    """
    Fetches and parses one day's bookings for the configured room.

    Raises:
        UpstreamError: On transport failure or a payload that is not a list.
    """
    payload = await client.get_json(
        BOOKINGS_PATH, params={"eid": settings.room_id, "date": day.isoformat()}
    )
    if not isinstance(payload, list):
        raise UpstreamError(
            f"Bookings payload for {day.isoformat()} is not a list",
            url=client.url_for(BOOKINGS_PATH),
        )
    tz = settings.tz
    parsed = (parse_booking(raw, tz) for raw in payload)
    return [booking for booking in parsed if booking is not None]


async def fetch_bookings(client: UpstreamClient, settings: Settings, day: date,
                         spans_next_day: bool) -> List[BookingInterval]:
    """Bookings for ``day``, plus the following day when the hours cross midnight."""
    days = [day]
    if spans_next_day:
        days.append(day + timedelta(days=1))
    tasks = [asyncio.ensure_future(fetch_bookings_for_day(client, settings, d)) for d in days]
    try:
        results = await asyncio.gather(*tasks)
    finally:
        # No fetch outlives this call
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    return [booking for day_bookings in results for booking in day_bookings]
