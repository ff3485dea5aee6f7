import logging
from datetime import date, datetime
from typing import Any

from vetclinic.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentKind,
    AppointmentPublic,
    AppointmentStatus,
    AppointmentUpdate,
)
from vetclinic.models.exam_result import ExamResult, ExamResultCreate
from vetclinic.models.results import ActionResult, ErrorKind
from vetclinic.services.business_hours import BusinessHours, validate_slot
from vetclinic.services.slot_service import format_slot, is_slot_taken
from vetclinic.services.store import AppointmentStore, SlotTakenError, StoreError

logger = logging.getLogger(__name__)

SAVE_FAILURE_MESSAGE = "Could not save the appointment. Please try again."
NOT_FOUND_MESSAGE = "Appointment not found."


def to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic(
        id=a.id,
        client_id=a.client_id,
        pet_id=a.pet_id,
        scheduled_at=a.scheduled_at,
        duration_minutes=a.duration_minutes,
        kind=AppointmentKind(a.kind),
        status=AppointmentStatus(a.status),
        notes=a.notes,
        has_result=a.has_result,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


def _ok(message: str, appointment: Appointment | None = None) -> ActionResult:
    return ActionResult(
        success=True,
        message=message,
        appointment=to_public(appointment) if appointment is not None else None,
    )


def _rejected(message: str, error: ErrorKind = ErrorKind.POLICY) -> ActionResult:
    return ActionResult(success=False, message=message, error=error)


def _store_failure(action: str, exc: StoreError) -> ActionResult:
    logger.exception("Appointment %s failed: %s", action, exc)
    return _rejected(SAVE_FAILURE_MESSAGE, ErrorKind.STORE_FAILURE)


def slot_taken_message(candidate: datetime) -> str:
    return f"The {format_slot(candidate.hour)} slot on {candidate.date().isoformat()} is already booked."


async def _check_pet(store: AppointmentStore, client_id: int, pet_id: int) -> ActionResult | None:
    pet = await store.get_pet(pet_id)
    if pet is None or pet.client_id != client_id:
        return _rejected("Pet not found for this client.", ErrorKind.NOT_FOUND)
    return None


async def _check_time(
    store: AppointmentStore, candidate: datetime, hours: BusinessHours, exclude_id: int | None = None
) -> ActionResult | None:
    reason = validate_slot(candidate, hours)
    if reason:
        return _rejected(reason)
    if await is_slot_taken(store, candidate, exclude_id=exclude_id):
        return _rejected(slot_taken_message(candidate))
    return None


async def create_appointment(
    store: AppointmentStore, data: AppointmentCreate, hours: BusinessHours | None = None
) -> ActionResult:
    hours = hours or BusinessHours.from_settings()
    scheduled_at = hours.to_local(data.scheduled_at)
    try:
        rejection = await _check_pet(store, data.client_id, data.pet_id) or await _check_time(
            store, scheduled_at, hours
        )
        if rejection:
            return rejection
        appointment = await store.insert_appointment(
            Appointment(
                client_id=data.client_id,
                pet_id=data.pet_id,
                scheduled_at=scheduled_at,
                duration_minutes=hours.slot_minutes,
                kind=data.kind,
                status=AppointmentStatus.SCHEDULED,
                notes=data.notes,
            )
        )
    except SlotTakenError:
        return _rejected(slot_taken_message(scheduled_at))
    except StoreError as e:
        return _store_failure("create", e)
    logger.info("Appointment %s scheduled at %s", appointment.id, appointment.scheduled_at)
    return _ok("Appointment created.", appointment)


async def edit_appointment(
    store: AppointmentStore,
    appointment_id: int,
    changes: AppointmentUpdate,
    hours: BusinessHours | None = None,
) -> ActionResult:
    hours = hours or BusinessHours.from_settings()
    # notes is the only field that may be cleared with null
    fields: dict[str, Any] = {
        k: v for k, v in changes.model_dump(exclude_unset=True).items() if v is not None or k == "notes"
    }
    try:
        appointment = await store.get_appointment(appointment_id)
        if appointment is None:
            return _rejected(NOT_FOUND_MESSAGE, ErrorKind.NOT_FOUND)
        status = AppointmentStatus(appointment.status)
        if status != AppointmentStatus.SCHEDULED:
            return _rejected(f"Only scheduled appointments can be edited; this one is {status.value}.")
        if "client_id" in fields or "pet_id" in fields:
            rejection = await _check_pet(
                store,
                fields.get("client_id", appointment.client_id),
                fields.get("pet_id", appointment.pet_id),
            )
            if rejection:
                return rejection
        if "scheduled_at" in fields:
            fields["scheduled_at"] = hours.to_local(fields["scheduled_at"])
            rejection = await _check_time(store, fields["scheduled_at"], hours, exclude_id=appointment_id)
            if rejection:
                return rejection
        if not fields:
            return _ok("Nothing to update.", appointment)
        # a failed flush expires the instance, so read the time before writing
        candidate = fields.get("scheduled_at", appointment.scheduled_at)
        appointment = await store.update_appointment(appointment_id, fields)
    except SlotTakenError:
        return _rejected(slot_taken_message(candidate))
    except StoreError as e:
        return _store_failure("edit", e)
    return _ok("Appointment updated.", appointment)


async def _transition(
    store: AppointmentStore, appointment_id: int, target: AppointmentStatus, done_message: str
) -> ActionResult:
    try:
        appointment = await store.get_appointment(appointment_id)
        if appointment is None:
            return _rejected(NOT_FOUND_MESSAGE, ErrorKind.NOT_FOUND)
        current = AppointmentStatus(appointment.status)
        if current.is_final:
            return _rejected(f"Appointment is already finalized ({current.value}).")
        if not current.can_transition_to(target):
            return _rejected(f"Appointment is already {current.value}.")
        appointment = await store.set_status(appointment_id, target)
    except StoreError as e:
        return _store_failure(target.value, e)
    logger.info("Appointment %s moved %s -> %s", appointment_id, current.value, target.value)
    return _ok(done_message, appointment)


async def cancel_appointment(store: AppointmentStore, appointment_id: int) -> ActionResult:
    return await _transition(store, appointment_id, AppointmentStatus.CANCELLED, "Appointment cancelled.")


async def confirm_appointment(store: AppointmentStore, appointment_id: int) -> ActionResult:
    return await _transition(store, appointment_id, AppointmentStatus.CONFIRMED, "Appointment confirmed.")


async def complete_appointment(store: AppointmentStore, appointment_id: int) -> ActionResult:
    return await _transition(store, appointment_id, AppointmentStatus.COMPLETED, "Appointment completed.")


async def add_exam_result(
    store: AppointmentStore, appointment_id: int, data: ExamResultCreate
) -> ActionResult:
    """Attach a result to a completed exam. The appointment status is left unchanged."""
    try:
        appointment = await store.get_appointment(appointment_id)
        if appointment is None:
            return _rejected(NOT_FOUND_MESSAGE, ErrorKind.NOT_FOUND)
        if AppointmentKind(appointment.kind) != AppointmentKind.EXAM:
            return _rejected("Exam results can only be added to exam appointments.")
        if AppointmentStatus(appointment.status) != AppointmentStatus.COMPLETED:
            return _rejected("Exam results can only be added once the exam is completed.")
        if appointment.has_result:
            return _rejected("This exam already has a result.")
        await store.insert_exam_result(
            ExamResult(
                appointment_id=appointment_id,
                pet_id=appointment.pet_id,
                client_id=appointment.client_id,
                exam_name=data.exam_name,
                result_date=data.result_date,
                result_summary=data.result_summary,
                attachment_url=data.attachment_url or None,
            )
        )
        appointment = await store.get_appointment(appointment_id)
    except StoreError as e:
        return _store_failure("exam result", e)
    return _ok("Exam result added.", appointment)


async def list_appointments(store: AppointmentStore, from_date: date | None = None) -> list[Appointment]:
    start = datetime(from_date.year, from_date.month, from_date.day) if from_date else None
    return await store.list_appointments(start)
