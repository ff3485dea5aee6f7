import calendar
from datetime import date, datetime
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict

from vetclinic.core.config import Settings, settings


class BusinessHours(BaseModel):
    """Clinic opening policy: hourly slots in [open_hour, close_hour), one closed weekday."""

    model_config = ConfigDict(frozen=True)

    open_hour: int = 9
    close_hour: int = 18
    closed_weekday: int = 6  # date.weekday(): Monday=0 ... Sunday=6
    slot_minutes: int = 60
    timezone: str = "America/Sao_Paulo"

    @classmethod
    def from_settings(cls, s: Settings = settings) -> "BusinessHours":
        return cls(
            open_hour=s.clinic_open_hour,
            close_hour=s.clinic_close_hour,
            closed_weekday=s.clinic_closed_weekday,
            slot_minutes=s.slot_duration_minutes,
            timezone=s.clinic_timezone,
        )

    def slot_hours(self) -> list[int]:
        return list(range(self.open_hour, self.close_hour))

    def is_closed(self, d: date) -> bool:
        return d.weekday() == self.closed_weekday

    def to_local(self, dt: datetime) -> datetime:
        """Naive local clinic time. Aware values are converted first."""
        if dt.tzinfo is not None:
            return dt.astimezone(ZoneInfo(self.timezone)).replace(tzinfo=None)
        return dt

    def closed_day_reason(self) -> str:
        day_name = calendar.day_name[self.closed_weekday]
        return f"Cannot schedule on {day_name}s: the clinic is closed on this day."

    def outside_hours_reason(self, hour: int) -> str:
        return (
            f"Cannot schedule at {hour}:00: outside operating hours "
            f"({self.open_hour}:00 to {self.close_hour}:00)."
        )


def validate_slot(candidate: datetime, hours: BusinessHours | None = None) -> str | None:
    """Return the rejection reason for a start time, or None when the clinic is open then.

    Does not look at existing bookings; see slot_service.is_slot_taken.
    """
    hours = hours or BusinessHours.from_settings()
    local = hours.to_local(candidate)
    if hours.is_closed(local.date()):
        return hours.closed_day_reason()
    if local.hour < hours.open_hour or local.hour >= hours.close_hour:
        return hours.outside_hours_reason(local.hour)
    return None
