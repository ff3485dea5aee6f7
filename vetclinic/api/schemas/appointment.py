from datetime import date, datetime

from pydantic import BaseModel, Field, HttpUrl, field_validator

from vetclinic.models.appointment import AppointmentKind


class CreateAppointmentRequest(BaseModel):
    client_id: int
    pet_id: int
    scheduled_at: datetime
    kind: AppointmentKind
    notes: str | None = None


class EditAppointmentRequest(BaseModel):
    client_id: int | None = None
    pet_id: int | None = None
    scheduled_at: datetime | None = None
    kind: AppointmentKind | None = None
    notes: str | None = None


class ExamResultRequest(BaseModel):
    exam_name: str = Field(min_length=3)
    result_date: date
    result_summary: str = Field(min_length=10)
    attachment_url: HttpUrl | None = None

    @field_validator("attachment_url", mode="before")
    @classmethod
    def empty_url_is_none(cls, v: object) -> object:
        return v or None

    @field_validator("result_date")
    @classmethod
    def not_in_future(cls, v: date) -> date:
        if v > date.today():
            raise ValueError("result date cannot be in the future")
        return v


class AgentRequest(BaseModel):
    prompt: str = Field(min_length=1)


class AgentResponse(BaseModel):
    reply: str
