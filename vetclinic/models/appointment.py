from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from vetclinic.models.columns import naive_datetime_column


class AppointmentKind(str, Enum):
    CONSULTATION = "consultation"
    VACCINATION = "vaccination"
    SURGERY = "surgery"
    EXAM = "exam"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def is_final(self) -> bool:
        return self in (AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED)

    def can_transition_to(self, target: "AppointmentStatus") -> bool:
        return target in ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED}
    ),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED}),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
}


def _enum_column(enum_cls: type[Enum], name: str, **kwargs) -> sa.Column:
    """Store enum values (not member names) so raw SQL predicates can use them."""
    return sa.Column(
        sa.Enum(
            enum_cls,
            name=name,
            native_enum=False,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        **kwargs,
    )


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    # One active booking per hourly slot; cancelled rows free the slot
    __table_args__ = (
        sa.Index(
            "uq_appointments_active_slot",
            "slot_start",
            unique=True,
            postgresql_where=sa.text("status != 'cancelled'"),
            sqlite_where=sa.text("status != 'cancelled'"),
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="clients.id", index=True)
    pet_id: int = Field(foreign_key="pets.id", index=True)
    scheduled_at: datetime = Field(sa_column=naive_datetime_column(nullable=False, index=True))
    # scheduled_at truncated to the hour, set by the store
    slot_start: datetime | None = Field(default=None, sa_column=naive_datetime_column())
    duration_minutes: int = 60
    kind: AppointmentKind = Field(sa_column=_enum_column(AppointmentKind, "appointment_kind"))
    status: AppointmentStatus = Field(
        default=AppointmentStatus.SCHEDULED,
        sa_column=_enum_column(AppointmentStatus, "appointment_status", index=True),
    )
    notes: str | None = None
    has_result: bool = False
    created_at: datetime | None = Field(default=None, sa_column=naive_datetime_column())
    updated_at: datetime | None = Field(default=None, sa_column=naive_datetime_column())


class AppointmentCreate(SQLModel):
    client_id: int
    pet_id: int
    scheduled_at: datetime
    kind: AppointmentKind
    notes: str | None = None


class AppointmentUpdate(SQLModel):
    client_id: int | None = None
    pet_id: int | None = None
    scheduled_at: datetime | None = None
    kind: AppointmentKind | None = None
    notes: str | None = None


class AppointmentPublic(SQLModel):
    id: int
    client_id: int
    pet_id: int
    scheduled_at: datetime
    duration_minutes: int
    kind: AppointmentKind
    status: AppointmentStatus
    notes: str | None = None
    has_result: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
