from datetime import date
from enum import Enum

from sqlmodel import SQLModel

from vetclinic.models.appointment import AppointmentPublic


class ErrorKind(str, Enum):
    POLICY = "policy"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    STORE_FAILURE = "store_failure"


class ActionResult(SQLModel):
    """Outcome of a booking operation. Rejections carry a user-facing message."""

    success: bool
    message: str
    error: ErrorKind | None = None
    appointment: AppointmentPublic | None = None


class SlotAvailability(str, Enum):
    AVAILABLE = "available"
    FULLY_BOOKED = "fully_booked"
    CLOSED = "closed"
    UNAVAILABLE = "unavailable"  # bookings could not be read


class SlotListing(SQLModel):
    day: date
    availability: SlotAvailability
    slots: list[str] = []
    message: str
