from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_serializer


class RequestCreate(BaseModel):
    student_id: Optional[int] = Field(default=None, alias="studentId")
    subject: Optional[str] = None
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class StatusUpdate(BaseModel):
    status: Optional[str] = None


class RequestRead(BaseModel):
    """A request with its author fields already resolved (live or snapshot)."""

    id: int
    student_id: Optional[int] = Field(alias="studentId")
    subject: str
    description: str
    status: str
    date_created: datetime = Field(alias="dateCreated")
    full_name: Optional[str] = Field(alias="fullName")
    residence: Optional[str]
    block: Optional[str]

    class Config:
        populate_by_name = True

    @field_serializer("date_created")
    def _iso_utc(self, value: datetime) -> str:
        # SQLite hands back naive datetimes; they are UTC
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)
