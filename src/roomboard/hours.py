"""
Today's opening hours.

``resolve_hours`` never raises: any problem with the hours source (transport,
bad JSON, missing date, closed day, malformed intervals) yields the static
fallback window from settings, flagged as ``HoursSource.FALLBACK``.
"""

import logging
import re
from datetime import date
from typing import Any, List

from .config import Settings
from .models import HoursResolution, HoursSource, HoursWindow
from .timeparse import parse_clock
from .upstream import UpstreamClient, UpstreamError


logger = logging.getLogger(__name__)

HOURS_PATH = "api/1.1/hours/{location_id}"

# Midnight to midnight; the grid builder rolls the close over to the next day
ALWAYS_OPEN_WINDOW = HoursWindow(open_time="12:00am", close_time="12:00am")

_OPEN_STATUS = re.compile(r"open", re.IGNORECASE)
_ALL_DAY_STATUS = re.compile(r"^\s*24\s*hours\s*$", re.IGNORECASE)

MINUTES_PER_DAY = 24 * 60


class MalformedHoursError(ValueError):
    """The hours payload has no usable entry for the requested date."""


def fallback_window(settings: Settings) -> HoursWindow:
    return HoursWindow(
        open_time=f"{settings.fallback_open:02d}:00",
        close_time=f"{settings.fallback_close:02d}:00",
    )


def _minutes(time_str: Any) -> int:
    clock = parse_clock(time_str)
    if clock is None:
        raise MalformedHoursError(f"Unparseable time in hours: {time_str!r}")
    return clock.hour * 60 + clock.minute


def extremal_window(hours: List[Any]) -> HoursWindow:
    """
    Collapses a day's sub-intervals to one span: earliest "from", latest "to".

    A "to" that is not after its own "from" is taken to close on the next
    day, so "8:00pm - 1:00am" outranks "9:00am - 5:00pm" as the latest close.
    The original strings are returned unchanged.
    """
    earliest = latest = None
    for interval in hours:
        if not isinstance(interval, dict):
            raise MalformedHoursError(f"Hours interval is not an object: {interval!r}")
        start = _minutes(interval.get("from"))
        end = _minutes(interval.get("to"))
        if end <= start:
            end += MINUTES_PER_DAY
        if earliest is None or start < earliest[0]:
            earliest = (start, interval["from"])
        if latest is None or end > latest[0]:
            latest = (end, interval["to"])
    if earliest is None or latest is None:
        raise MalformedHoursError("No hours intervals")
    return HoursWindow(open_time=earliest[1], close_time=latest[1])


def interpret_hours_payload(payload: Any, day: date) -> HoursResolution:
    """
    Picks the entry for ``day`` out of an hours response.

    Expected shape: ``[{"dates": {"YYYY-MM-DD": {"status": ..., "hours": [{"from": ..., "to": ...}]}}}]``

    Raises:
        MalformedHoursError: If the day is missing, closed or malformed.
    """
    iso_day = day.isoformat()
    try:
        day_data = payload[0]["dates"][iso_day]
    except (KeyError, IndexError, TypeError):
        raise MalformedHoursError(f"No date entry for {iso_day} in hours payload")
    if not isinstance(day_data, dict):
        raise MalformedHoursError(f"Hours entry for {iso_day} is not an object")

    status = day_data.get("status")
    hours = day_data.get("hours")
    if not isinstance(status, str):
        raise MalformedHoursError(f"Hours entry for {iso_day} has no status")

    if _ALL_DAY_STATUS.match(status):
        return HoursResolution(window=ALWAYS_OPEN_WINDOW, source=HoursSource.ALWAYS_OPEN)

    is_open = bool(_OPEN_STATUS.search(status))
    if is_open and (not isinstance(hours, list) or len(hours) == 0):
        return HoursResolution(window=ALWAYS_OPEN_WINDOW, source=HoursSource.ALWAYS_OPEN)
    if not is_open or not isinstance(hours, list):
        raise MalformedHoursError(f"Closed or malformed hours: {status}")

    return HoursResolution(window=extremal_window(hours), source=HoursSource.UPSTREAM)


async def resolve_hours(client: UpstreamClient, day: date, settings: Settings) -> HoursResolution:
    """
    Resolves the open/close window for ``day``, substituting the configured
    fallback hours on any failure.
    """
    path = HOURS_PATH.format(location_id=settings.location_id)
    try:
        payload = await client.get_json(path, params={"date": day.isoformat()})
        return interpret_hours_payload(payload, day)
    except (UpstreamError, MalformedHoursError) as exc:
        logger.warning("Using fallback hours for %s: %s", day.isoformat(), exc)
        return HoursResolution(
            window=fallback_window(settings),
            source=HoursSource.FALLBACK,
            reason=str(exc),
        )
