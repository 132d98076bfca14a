from typing import Optional

from pydantic import BaseModel, Field


class StudentRegister(BaseModel):
    # everything optional here; the service reports missing fields itself
    full_name: Optional[str] = Field(default=None, alias="fullName")
    contact_number: Optional[str] = Field(default=None, alias="contactNumber")
    email: Optional[str] = None
    residence: Optional[str] = None
    block: Optional[str] = None
    password: Optional[str] = None

    class Config:
        populate_by_name = True
