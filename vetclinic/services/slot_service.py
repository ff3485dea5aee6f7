import logging
from datetime import date, datetime, time

from vetclinic.models.results import SlotAvailability, SlotListing
from vetclinic.services.business_hours import BusinessHours
from vetclinic.services.store import AppointmentStore, StoreError

logger = logging.getLogger(__name__)

READ_FAILURE_MESSAGE = "Could not load appointments. Please try again."


def day_bounds(d: date) -> tuple[datetime, datetime]:
    """Start and end of the day, both inclusive, local clinic time."""
    return datetime.combine(d, time.min), datetime.combine(d, time.max)


def format_slot(hour: int) -> str:
    return f"{hour}:00"


async def get_booked_hours(store: AppointmentStore, d: date) -> set[int]:
    start, end = day_bounds(d)
    appointments = await store.find_appointments(start, end)
    return {a.scheduled_at.hour for a in appointments}


async def is_slot_taken(
    store: AppointmentStore, candidate: datetime, exclude_id: int | None = None
) -> bool:
    """True when another non-cancelled appointment occupies candidate's hour."""
    start, end = day_bounds(candidate.date())
    appointments = await store.find_appointments(start, end)
    return any(
        a.scheduled_at.hour == candidate.hour and a.id != exclude_id for a in appointments
    )


async def list_available_slots(
    store: AppointmentStore, d: date, hours: BusinessHours | None = None
) -> SlotListing:
    hours = hours or BusinessHours.from_settings()
    if hours.is_closed(d):
        return SlotListing(
            day=d,
            availability=SlotAvailability.CLOSED,
            message=hours.closed_day_reason(),
        )
    try:
        booked = await get_booked_hours(store, d)
    except StoreError:
        logger.exception("Slot listing failed for %s", d)
        return SlotListing(day=d, availability=SlotAvailability.UNAVAILABLE, message=READ_FAILURE_MESSAGE)
    free = [format_slot(h) for h in hours.slot_hours() if h not in booked]
    if not free:
        return SlotListing(
            day=d,
            availability=SlotAvailability.FULLY_BOOKED,
            message=f"No available slots on {d.isoformat()}: the day is fully booked.",
        )
    return SlotListing(
        day=d,
        availability=SlotAvailability.AVAILABLE,
        slots=free,
        message=f"Available slots on {d.isoformat()}: {', '.join(free)}.",
    )
