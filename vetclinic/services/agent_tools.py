"""Scheduling tools exposed to the conversational agent.

Every tool returns a plain, human-readable string: the model has no channel
for structured errors, so rejections are rendered as text it can relay.
"""
import logging
from datetime import date, datetime
from typing import Any

from vetclinic.models.appointment import AppointmentCreate, AppointmentKind
from vetclinic.models.pet import Pet
from vetclinic.services.appointment_service import create_appointment
from vetclinic.services.business_hours import BusinessHours
from vetclinic.services.slot_service import list_available_slots
from vetclinic.services.store import AppointmentStore, StoreError

logger = logging.getLogger(__name__)

SCHEDULE_TOOL = "scheduleAppointment"
LIST_SLOTS_TOOL = "listAvailableSlots"

_KIND_ALIASES: dict[str, AppointmentKind] = {
    "consultation": AppointmentKind.CONSULTATION,
    "consult": AppointmentKind.CONSULTATION,
    "checkup": AppointmentKind.CONSULTATION,
    "check-up": AppointmentKind.CONSULTATION,
    "vaccination": AppointmentKind.VACCINATION,
    "vaccine": AppointmentKind.VACCINATION,
    "surgery": AppointmentKind.SURGERY,
    "exam": AppointmentKind.EXAM,
    "examination": AppointmentKind.EXAM,
}

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": SCHEDULE_TOOL,
            "description": (
                "Schedule a new consultation, vaccination, surgery or exam for a pet. "
                "Provide the pet's name, the date and time, and the appointment type."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "petName": {"type": "string", "description": "The pet's name."},
                    "dateTime": {
                        "type": "string",
                        "description": "Date and time of the appointment in ISO 8601 (e.g. '2026-10-20T15:00').",
                    },
                    "type": {
                        "type": "string",
                        "enum": [k.value for k in AppointmentKind],
                        "description": "The appointment type.",
                    },
                    "ownerName": {
                        "type": "string",
                        "description": "The owner's name. Only needed when several pets share the same name.",
                    },
                    "notes": {"type": "string", "description": "Optional notes for the clinic."},
                },
                "required": ["petName", "dateTime", "type"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": LIST_SLOTS_TOOL,
            "description": (
                "Check the available times on a given date. The clinic opens 9:00 to 18:00, "
                "Monday to Saturday. Each appointment lasts 1 hour."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "date": {
                        "type": "string",
                        "description": "The date to check in ISO 8601 (only the date part is used).",
                    },
                },
                "required": ["date"],
            },
        },
    },
]


def parse_when(text: str, hours: BusinessHours) -> datetime | None:
    """Parse an ISO-ish timestamp into naive local clinic time."""
    try:
        dt = datetime.fromisoformat(str(text).strip())
    except ValueError:
        return None
    return hours.to_local(dt)


def parse_day(text: str) -> date | None:
    """Calendar date as written; any time or offset part is ignored."""
    try:
        return datetime.fromisoformat(str(text).strip()).date()
    except ValueError:
        return None


def parse_kind(text: str) -> AppointmentKind | None:
    return _KIND_ALIASES.get(str(text).strip().lower())


async def resolve_pet(store: AppointmentStore, pet_name: str, owner_name: str | None = None) -> Pet | str:
    """Find exactly one pet by name, or explain why not."""
    pets = await store.find_pets_by_name(pet_name)
    if not pets:
        return f"No pet named '{pet_name}' was found."
    if owner_name:
        wanted = owner_name.strip().lower()
        matches = []
        for pet in pets:
            client = await store.get_client(pet.client_id)
            if client is not None and client.name.strip().lower() == wanted:
                matches.append(pet)
        if not matches:
            return f"No pet named '{pet_name}' belongs to {owner_name}."
        pets = matches
    if len(pets) > 1:
        return (
            f"More than one pet is named '{pet_name}'. "
            "Please tell me the owner's name so I can pick the right one."
        )
    return pets[0]


async def schedule_appointment_tool(
    store: AppointmentStore,
    pet_name: str,
    date_time: str,
    appointment_type: str,
    owner_name: str | None = None,
    notes: str | None = None,
    hours: BusinessHours | None = None,
) -> str:
    hours = hours or BusinessHours.from_settings()
    kind = parse_kind(appointment_type)
    if kind is None:
        choices = ", ".join(k.value for k in AppointmentKind)
        return f"Unknown appointment type '{appointment_type}'. Choose one of: {choices}."
    when = parse_when(date_time, hours)
    if when is None:
        return f"Could not understand the date '{date_time}'. Use ISO 8601, e.g. 2026-10-20T15:00."
    try:
        pet = await resolve_pet(store, pet_name, owner_name)
    except StoreError:
        logger.exception("Pet lookup failed for %r", pet_name)
        return "Could not look up the pet. Please try again."
    if isinstance(pet, str):
        return pet
    result = await create_appointment(
        store,
        AppointmentCreate(client_id=pet.client_id, pet_id=pet.id, scheduled_at=when, kind=kind, notes=notes),
        hours,
    )
    if not result.success:
        return result.message
    return f"{kind.value.capitalize()} for {pet.name} booked for {when:%Y-%m-%d %H:%M}."


async def list_available_slots_tool(
    store: AppointmentStore, date_text: str, hours: BusinessHours | None = None
) -> str:
    hours = hours or BusinessHours.from_settings()
    day = parse_day(date_text)
    if day is None:
        return f"Could not understand the date '{date_text}'. Use ISO 8601, e.g. 2026-10-20."
    listing = await list_available_slots(store, day, hours)
    return listing.message


def _text_arg(arguments: dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if value is None:
        raise KeyError(key)
    return str(value)


def _optional_text_arg(arguments: dict[str, Any], key: str) -> str | None:
    value = arguments.get(key)
    return None if value is None else str(value)


async def execute_tool(
    store: AppointmentStore, name: str, arguments: dict[str, Any], hours: BusinessHours | None = None
) -> str:
    """Dispatch a model tool call by name. Always returns text for the model."""
    logger.info("Executing tool %s", name)
    try:
        if name == SCHEDULE_TOOL:
            return await schedule_appointment_tool(
                store,
                pet_name=_text_arg(arguments, "petName"),
                date_time=_text_arg(arguments, "dateTime"),
                appointment_type=_text_arg(arguments, "type"),
                owner_name=_optional_text_arg(arguments, "ownerName"),
                notes=_optional_text_arg(arguments, "notes"),
                hours=hours,
            )
        if name == LIST_SLOTS_TOOL:
            return await list_available_slots_tool(store, _text_arg(arguments, "date"), hours=hours)
    except KeyError as e:
        return f"Missing argument {e.args[0]!r} for {name}."
    return f"Unknown tool '{name}'."
