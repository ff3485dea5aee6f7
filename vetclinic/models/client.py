from datetime import datetime

from sqlmodel import Field, SQLModel

from vetclinic.models.columns import naive_datetime_column


class Client(SQLModel, table=True):
    __tablename__ = "clients"
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    created_at: datetime | None = Field(default=None, sa_column=naive_datetime_column())
    updated_at: datetime | None = Field(default=None, sa_column=naive_datetime_column())
