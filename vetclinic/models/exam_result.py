from datetime import date, datetime

from sqlmodel import Field, SQLModel

from vetclinic.models.columns import naive_datetime_column


class ExamResult(SQLModel, table=True):
    __tablename__ = "exam_results"
    id: int | None = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointments.id", index=True)
    pet_id: int = Field(foreign_key="pets.id", index=True)
    client_id: int = Field(foreign_key="clients.id", index=True)
    exam_name: str
    result_date: date
    result_summary: str
    attachment_url: str | None = None
    created_at: datetime | None = Field(default=None, sa_column=naive_datetime_column())
    updated_at: datetime | None = Field(default=None, sa_column=naive_datetime_column())


class ExamResultCreate(SQLModel):
    exam_name: str
    result_date: date
    result_summary: str
    attachment_url: str | None = None
