import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vetclinic.models.appointment import Appointment, AppointmentStatus
from vetclinic.models.client import Client
from vetclinic.models.exam_result import ExamResult
from vetclinic.models.pet import Pet
from vetclinic.services.store import SlotTakenError, StoreError

logger = logging.getLogger(__name__)

_ACTIVE_SLOT_INDEX = "uq_appointments_active_slot"


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def slot_start_for(scheduled_at: datetime) -> datetime:
    return scheduled_at.replace(minute=0, second=0, microsecond=0)


def _is_slot_violation(exc: IntegrityError) -> bool:
    text = str(exc.orig).lower()
    return _ACTIVE_SLOT_INDEX in text or "appointments.slot_start" in text


class SqlAppointmentStore:
    """AppointmentStore over an AsyncSession. Writes flush; the session owner commits."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _flush(self) -> None:
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            if _is_slot_violation(e):
                raise SlotTakenError("slot already booked") from e
            raise StoreError(str(e)) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreError(str(e)) from e

    async def _scalars(self, stmt) -> list[Any]:
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        return list(result.scalars().all())

    async def _get(self, model: type, pk: int) -> Any:
        try:
            return await self.session.get(model, pk)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    async def find_appointments(self, day_start: datetime, day_end: datetime) -> list[Appointment]:
        return await self._scalars(
            select(Appointment)
            .where(
                Appointment.scheduled_at >= day_start,
                Appointment.scheduled_at <= day_end,
                Appointment.status != AppointmentStatus.CANCELLED,
            )
            .order_by(Appointment.scheduled_at)
        )

    async def list_appointments(self, from_datetime: datetime | None = None) -> list[Appointment]:
        q = select(Appointment).order_by(Appointment.scheduled_at)
        if from_datetime:
            q = q.where(Appointment.scheduled_at >= from_datetime)
        return await self._scalars(q)

    async def get_appointment(self, appointment_id: int) -> Appointment | None:
        return await self._get(Appointment, appointment_id)

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        now = _utc_naive_now()
        appointment.slot_start = slot_start_for(appointment.scheduled_at)
        appointment.created_at = now
        appointment.updated_at = now
        self.session.add(appointment)
        await self._flush()
        await self.session.refresh(appointment)
        return appointment

    async def update_appointment(self, appointment_id: int, fields: dict[str, Any]) -> Appointment:
        appointment = await self.get_appointment(appointment_id)
        if appointment is None:
            raise StoreError(f"appointment {appointment_id} disappeared")
        for key, value in fields.items():
            setattr(appointment, key, value)
        if "scheduled_at" in fields:
            appointment.slot_start = slot_start_for(appointment.scheduled_at)
        appointment.updated_at = _utc_naive_now()
        self.session.add(appointment)
        await self._flush()
        await self.session.refresh(appointment)
        return appointment

    async def set_status(self, appointment_id: int, status: AppointmentStatus) -> Appointment:
        return await self.update_appointment(appointment_id, {"status": status})

    async def get_pet(self, pet_id: int) -> Pet | None:
        return await self._get(Pet, pet_id)

    async def get_client(self, client_id: int) -> Client | None:
        return await self._get(Client, client_id)

    async def find_pets_by_name(self, name: str) -> list[Pet]:
        return await self._scalars(
            select(Pet).where(func.lower(Pet.name) == name.strip().lower()).order_by(Pet.id)
        )

    async def insert_exam_result(self, result: ExamResult) -> ExamResult:
        appointment = await self.get_appointment(result.appointment_id)
        if appointment is None:
            raise StoreError(f"appointment {result.appointment_id} disappeared")
        now = _utc_naive_now()
        result.created_at = now
        result.updated_at = now
        appointment.has_result = True
        appointment.updated_at = now
        self.session.add(result)
        self.session.add(appointment)
        await self._flush()
        await self.session.refresh(result)
        return result
