"""Persistence capability consumed by the scheduling services.

The services never reach for a session or engine directly; callers hand them
an object satisfying ``AppointmentStore`` (the SQL implementation in
``sql_store`` for the app, an in-memory fake in tests).
"""
from datetime import datetime
from typing import Any, Protocol

from vetclinic.models.appointment import Appointment, AppointmentStatus
from vetclinic.models.client import Client
from vetclinic.models.exam_result import ExamResult
from vetclinic.models.pet import Pet


class StoreError(Exception):
    """Read or write against the backing store failed."""


class SlotTakenError(StoreError):
    """An active appointment already occupies the hourly slot."""


class AppointmentStore(Protocol):
    async def find_appointments(self, day_start: datetime, day_end: datetime) -> list[Appointment]:
        """Non-cancelled appointments with day_start <= scheduled_at <= day_end."""
        ...

    async def list_appointments(self, from_datetime: datetime | None = None) -> list[Appointment]:
        ...

    async def get_appointment(self, appointment_id: int) -> Appointment | None:
        ...

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        ...

    async def update_appointment(self, appointment_id: int, fields: dict[str, Any]) -> Appointment:
        ...

    async def set_status(self, appointment_id: int, status: AppointmentStatus) -> Appointment:
        ...

    async def get_pet(self, pet_id: int) -> Pet | None:
        ...

    async def get_client(self, client_id: int) -> Client | None:
        ...

    async def find_pets_by_name(self, name: str) -> list[Pet]:
        ...

    async def insert_exam_result(self, result: ExamResult) -> ExamResult:
        """Persist the result and flag its appointment with has_result."""
        ...
