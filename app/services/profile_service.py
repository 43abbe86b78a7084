# app/services/profile_service.py
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.errors import NotFoundError
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.profile import ProfileUpdate, ProfileRoleUpdate


class ProfileService:
    """
    Business logic for Profile.

    Responsibilities:
      - self-service profile edits (phone number)
      - role management (admin only)
    """

    def __init__(self, repo: ProfileRepository):
        self.repo = repo

    # ----- Self profile -----

    def get_me(self, current: Profile) -> Profile:
        """Return the current authenticated profile."""
        return current

    def update_me(
        self,
        session: Session,
        current: Profile,
        payload: ProfileUpdate,
    ) -> Profile:
        """
        Partial update for profile edits.
        An empty phone number clears it.
        """
        if "phone_number" in payload.model_fields_set:
            current.phone_number = payload.phone_number or None

        current.updated_at = datetime.now(timezone.utc)
        return self.repo.update(session, current)

    # ----- Admin operations -----

    def list_profiles(self, session: Session, skip: int, limit: int) -> list[Profile]:
        """List profiles with pagination (admin only)."""
        return self.repo.list(session, skip=skip, limit=limit)

    def get_profile(self, session: Session, profile_id: uuid.UUID) -> Profile:
        """
        Get a profile by id (admin only).

        Raises:
            NotFoundError: if not found.
        """
        profile = self.repo.get_by_id(session, profile_id)
        if not profile:
            raise NotFoundError("User not found")
        return profile

    def update_role(
        self,
        session: Session,
        profile_id: uuid.UUID,
        payload: ProfileRoleUpdate,
    ) -> Profile:
        """
        Change a profile's role (admin only).

        Role validation is enforced by the schema (Literal).
        """
        profile = self.get_profile(session, profile_id)
        profile.role = payload.role
        profile.updated_at = datetime.now(timezone.utc)
        return self.repo.update(session, profile)
