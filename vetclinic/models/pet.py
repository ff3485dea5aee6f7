from datetime import datetime

from sqlmodel import Field, SQLModel

from vetclinic.models.columns import naive_datetime_column


class Pet(SQLModel, table=True):
    __tablename__ = "pets"
    id: int | None = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="clients.id", index=True)
    name: str = Field(index=True)
    species: str | None = None
    breed: str | None = None
    created_at: datetime | None = Field(default=None, sa_column=naive_datetime_column())
    updated_at: datetime | None = Field(default=None, sa_column=naive_datetime_column())
