# app/models/profile.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Profile(SQLModel, table=True):
    """
    Back-office profile of a Supabase Auth user.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Role:
      - "admin" | "staff"
      - admins manage stock and see the dashboard; staff record sales.

    Passwords live in Supabase Auth; this table only mirrors identity,
    application role and the phone number used for SMS alerts.
    """

    __tablename__ = "profiles"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from Supabase auth.users",
    )

    # Application role (not Supabase RLS role)
    role: str = Field(
        default="staff",
        index=True,
        description="Application role: admin | staff",
    )

    phone_number: str | None = Field(
        default=None,
        description="E.164 phone number; admins with one receive low stock SMS",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last update timestamp (UTC)",
    )
