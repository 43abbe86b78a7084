# app/schemas/profile.py
import re
import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel

# App-level roles. Unauthenticated callers have no profile row.
Role = Literal["admin", "staff"]

PHONE_RE = re.compile(r"^\+[1-9]\d{6,14}$")


class ProfileRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    email: EmailStr
    role: Role
    phone_number: str | None
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(SQLModel):
    """
    Partial profile update for authenticated users.

    Only the phone number is editable; send an empty string to clear it.
    """

    model_config = ConfigDict(extra="forbid")

    phone_number: str | None = None

    @field_validator("phone_number")
    @classmethod
    def normalize_phone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = re.sub(r"[\s\-()]", "", v)
        if v == "":
            return v
        if not PHONE_RE.match(v):
            raise ValueError("phone_number must be in E.164 format, e.g. +15551234567")
        return v


class ProfileRoleUpdate(SQLModel):
    """
    Admin-only role update schema.
    """

    model_config = ConfigDict(extra="forbid")
    role: Role
