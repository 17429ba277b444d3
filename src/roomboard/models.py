from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


SLOT_MINUTES = 30
SLOT_WIDTH = timedelta(minutes=SLOT_MINUTES)
SLOT_KEY_FORMAT = '%Y-%m-%d %H:%M'


def slot_key(instant: datetime) -> str:
    """Date+minute identity of a slot; the date keeps next-day slots apart."""
    return instant.strftime(SLOT_KEY_FORMAT)


# --- Enums ---

class BookingStatus(str, Enum):
    CONFIRMED = 'confirmed'
    CHECKED_IN = 'checked_in'
    ACTIVE = 'active'
    CANCELLED = 'cancelled'
    REJECTED = 'rejected'
    PENDING_CANCEL = 'pending_cancel'
    TENTATIVE = 'tentative'
    MEDIATED = 'mediated'
    UNKNOWN = 'unknown'

class HoursSource(str, Enum):
    UPSTREAM = 'upstream'
    ALWAYS_OPEN = 'always_open'
    FALLBACK = 'fallback'


# --- Core Models ---

class Credential(BaseModel):
    """A bearer token and the instant after which it must not be handed out."""
    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at

class HoursWindow(BaseModel):
    """Open/close boundary strings for one day, in the hours source's own format."""
    open_time: str
    close_time: str

class HoursResolution(BaseModel):
    """Outcome of resolving today's hours.

    ``source`` tells a really-open window apart from a degraded one; ``reason``
    carries the failure that triggered the fallback, if any.
    """
    window: HoursWindow
    source: HoursSource
    reason: Optional[str] = None

    @property
    def fallback_applied(self) -> bool:
        return self.source == HoursSource.FALLBACK

class Slot(BaseModel):
    """A fixed-width interval on the availability grid."""
    model_config = ConfigDict(frozen=True)

    start: datetime # Timezone-aware
    end: datetime
    label: str

    @property
    def key(self) -> str:
        return slot_key(self.start)

class BookingInterval(BaseModel):
    """A booking as reported by the booking source, with parsed instants."""
    start: datetime
    end: datetime
    status: BookingStatus
    raw_status: Optional[str] = None # Kept for logging

class GridCell(BaseModel):
    label: str
    booked: bool

class AvailabilityResult(BaseModel):
    """Payload served to the board."""
    date_display: str
    grid: List[GridCell] = Field(default_factory=list)
