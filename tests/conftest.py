import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("LLM_API_KEY", "")

from datetime import UTC, datetime  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402

from vetclinic.models.appointment import Appointment, AppointmentStatus  # noqa: E402
from vetclinic.models.client import Client  # noqa: E402
from vetclinic.models.exam_result import ExamResult  # noqa: E402
from vetclinic.models.pet import Pet  # noqa: E402
from vetclinic.services.business_hours import BusinessHours  # noqa: E402
from vetclinic.services.store import SlotTakenError, StoreError  # noqa: E402


class InMemoryAppointmentStore:
    """AppointmentStore fake with a read counter and switchable write failures."""

    def __init__(self) -> None:
        self.appointments: dict[int, Appointment] = {}
        self.clients: dict[int, Client] = {}
        self.pets: dict[int, Pet] = {}
        self.exam_results: list[ExamResult] = []
        self.reads = 0
        self.fail_writes = False
        self.enforce_unique_slot = True
        self._next_id = 1

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id - 1

    def add_client(self, name: str) -> Client:
        client = Client(id=self._new_id(), name=name)
        self.clients[client.id] = client
        return client

    def add_pet(self, name: str, client: Client) -> Pet:
        pet = Pet(id=self._new_id(), name=name, client_id=client.id)
        self.pets[pet.id] = pet
        return pet

    def _check_write(self, scheduled_at: datetime, status: AppointmentStatus, own_id: int | None) -> None:
        if self.fail_writes:
            raise StoreError("write failed")
        if not self.enforce_unique_slot or status == AppointmentStatus.CANCELLED:
            return
        slot = scheduled_at.replace(minute=0, second=0, microsecond=0)
        for other in self.appointments.values():
            if other.id == own_id or other.status == AppointmentStatus.CANCELLED:
                continue
            if other.slot_start == slot:
                raise SlotTakenError("slot already booked")

    async def find_appointments(self, day_start: datetime, day_end: datetime) -> list[Appointment]:
        self.reads += 1
        return sorted(
            (
                a
                for a in self.appointments.values()
                if day_start <= a.scheduled_at <= day_end and a.status != AppointmentStatus.CANCELLED
            ),
            key=lambda a: a.scheduled_at,
        )

    async def list_appointments(self, from_datetime: datetime | None = None) -> list[Appointment]:
        self.reads += 1
        items = [a for a in self.appointments.values() if from_datetime is None or a.scheduled_at >= from_datetime]
        return sorted(items, key=lambda a: a.scheduled_at)

    async def get_appointment(self, appointment_id: int) -> Appointment | None:
        self.reads += 1
        return self.appointments.get(appointment_id)

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        self._check_write(appointment.scheduled_at, appointment.status, None)
        now = datetime.now(UTC).replace(tzinfo=None)
        appointment.id = self._new_id()
        appointment.slot_start = appointment.scheduled_at.replace(minute=0, second=0, microsecond=0)
        appointment.created_at = now
        appointment.updated_at = now
        self.appointments[appointment.id] = appointment
        return appointment

    async def update_appointment(self, appointment_id: int, fields: dict[str, Any]) -> Appointment:
        appointment = self.appointments[appointment_id]
        self._check_write(
            fields.get("scheduled_at", appointment.scheduled_at),
            fields.get("status", appointment.status),
            appointment_id,
        )
        for key, value in fields.items():
            setattr(appointment, key, value)
        appointment.slot_start = appointment.scheduled_at.replace(minute=0, second=0, microsecond=0)
        appointment.updated_at = datetime.now(UTC).replace(tzinfo=None)
        return appointment

    async def set_status(self, appointment_id: int, status: AppointmentStatus) -> Appointment:
        return await self.update_appointment(appointment_id, {"status": status})

    async def get_pet(self, pet_id: int) -> Pet | None:
        self.reads += 1
        return self.pets.get(pet_id)

    async def get_client(self, client_id: int) -> Client | None:
        self.reads += 1
        return self.clients.get(client_id)

    async def find_pets_by_name(self, name: str) -> list[Pet]:
        self.reads += 1
        wanted = name.strip().lower()
        return [p for p in self.pets.values() if p.name.lower() == wanted]

    async def insert_exam_result(self, result: ExamResult) -> ExamResult:
        if self.fail_writes:
            raise StoreError("write failed")
        result.id = self._new_id()
        self.exam_results.append(result)
        self.appointments[result.appointment_id].has_result = True
        return result


# 2026-10-20 is a Tuesday, 2026-10-25 a Sunday
TUESDAY = datetime(2026, 10, 20)
SUNDAY = datetime(2026, 10, 25)


@pytest.fixture
def hours() -> BusinessHours:
    return BusinessHours(open_hour=9, close_hour=18, closed_weekday=6, slot_minutes=60, timezone="America/Sao_Paulo")


@pytest.fixture
def store() -> InMemoryAppointmentStore:
    return InMemoryAppointmentStore()


@pytest.fixture
def owner(store: InMemoryAppointmentStore) -> Client:
    return store.add_client("Maria Silva")


@pytest.fixture
def rex(store: InMemoryAppointmentStore, owner: Client) -> Pet:
    return store.add_pet("Rex", owner)
