# app/repositories/profile_repo.py
import uuid

from sqlmodel import Session, select

from app.models.profile import Profile


class ProfileRepository:
    """
    Data access layer for Profile.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic

    Keep `list` as the last method: it shadows the builtin inside the
    class body, so annotations below it could not use list[...].
    """

    # ----- Notification recipients -----

    def list_admin_phone_numbers(self, session: Session) -> list[str]:
        """Phone numbers of every admin that has one."""
        stmt = (
            select(Profile.phone_number)
            .where(Profile.role == "admin")
            .where(Profile.phone_number.is_not(None))
            .where(Profile.phone_number != "")
        )
        return list(session.exec(stmt).all())

    # ----- Basic CRUD -----

    def get_by_id(self, session: Session, profile_id: uuid.UUID) -> Profile | None:
        """Return a Profile by primary key, or None if not found."""
        return session.get(Profile, profile_id)

    def create(self, session: Session, profile: Profile) -> Profile:
        """Insert a new Profile and return the persisted row."""
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    def update(self, session: Session, profile: Profile) -> Profile:
        """Persist changes to an existing Profile."""
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    def list(self, session: Session, skip: int = 0, limit: int = 50) -> list[Profile]:
        """
        Paginated profile listing, oldest first.
        """
        stmt = select(Profile).order_by(Profile.created_at).offset(skip).limit(limit)
        return list(session.exec(stmt).all())
