from vetclinic.models.client import Client
from vetclinic.models.pet import Pet
from vetclinic.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentKind,
    AppointmentPublic,
    AppointmentStatus,
    AppointmentUpdate,
)
from vetclinic.models.exam_result import ExamResult, ExamResultCreate
from vetclinic.models.results import ActionResult, ErrorKind, SlotAvailability, SlotListing

__all__ = [
    "Client",
    "Pet",
    "Appointment",
    "AppointmentCreate",
    "AppointmentKind",
    "AppointmentPublic",
    "AppointmentStatus",
    "AppointmentUpdate",
    "ExamResult",
    "ExamResultCreate",
    "ActionResult",
    "ErrorKind",
    "SlotAvailability",
    "SlotListing",
]
