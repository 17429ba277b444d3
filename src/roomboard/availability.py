"""
Today's room availability.

``get_today_availability`` is the single entry point used by the HTTP layer:
token -> hours -> (slot grid, bookings) -> per-slot occupancy.
"""

import logging
from datetime import date, datetime
from typing import Callable, List, Optional, Set

import httpx

from .auth import TokenProvider
from .bookings import fetch_bookings, occupied_keys
from .config import Settings
from .hours import resolve_hours
from .models import AvailabilityResult, GridCell, Slot
from .slots import build_slot_grid, spans_midnight
from .upstream import UpstreamClient, make_http_factory


logger = logging.getLogger(__name__)


def format_date_display(day: date) -> str:
    """'Monday, October 19, 2026'."""
    return f"{day:%A, %B} {day.day}, {day.year}"


def assemble_grid(slots: List[Slot], taken: Set[str], now: datetime) -> List[GridCell]:
    """
    Marks each slot booked or free, dropping slots that have fully elapsed.

    A slot stays visible until its end passes. If nothing is left (before
    opening or after closing) the whole day's grid is returned instead.
    """
    visible = [slot for slot in slots if slot.end > now]
    if not visible:
        visible = slots
    return [GridCell(label=slot.label, booked=slot.key in taken) for slot in visible]


async def get_today_availability(
    token_provider: TokenProvider,
    settings: Settings,
    now: Optional[datetime] = None,
    http_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
) -> AvailabilityResult:
    """
    Builds today's availability grid for the configured room.

    Args:
        token_provider: Source of the bearer token for upstream calls.
        settings: Application settings (host, ids, timezone, fallback hours).
        now: Current instant; defaults to the wall clock. Naive values are
            not accepted.
        http_factory: Produces the AsyncClient used for hours and bookings.

    Returns:
        AvailabilityResult with the display date and the slot grid.

    Raises:
        TokenFetchError: If no token could be obtained.
        UpstreamError: If bookings could not be fetched.
    """
    tz = settings.tz
    now = (now or datetime.now(tz)).astimezone(tz)
    today = now.date()
    if http_factory is None:
        http_factory = make_http_factory(settings.http_timeout)

    bearer = await token_provider.get_token()

    async with http_factory() as http:
        client = UpstreamClient(http, settings.libcal_host, bearer)
        hours = await resolve_hours(client, today, settings)
        if hours.fallback_applied:
            logger.warning("Hours for %s degraded to fallback window %s - %s",
                           today.isoformat(), hours.window.open_time, hours.window.close_time)
        next_day = spans_midnight(today, hours.window, tz)
        bookings = await fetch_bookings(client, settings, today, next_day)

    taken = occupied_keys(bookings, tz)
    slots = build_slot_grid(today, hours.window, tz)
    grid = assemble_grid(slots, taken, now)
    logger.debug("Built %d of %d slots for %s (%d occupied keys)",
                 len(grid), len(slots), today.isoformat(), len(taken))

    return AvailabilityResult(date_display=format_date_display(today), grid=grid)
